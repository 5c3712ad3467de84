# booklet_cli/commands/read.py
from datetime import datetime
import click
from booklet.sa.models import to_utc
from booklet.services.lifecycle import BookLocation
from booklet.sa.repositories.reading import ALL_TIME
from ..utils import (
    DATE_FORMAT, LOCATION_COLORS, book_label, format_date, get_engine,
    handle_errors, print_book_line, print_empty
)

SHELVES = ('tracking', 'completed', 'abandoned')
DATE = click.DateTime(formats=[DATE_FORMAT])


@click.group()
def read():
    """Track what you are reading"""
    pass


@read.command()
@click.argument('book_id', type=int)
@click.pass_context
@handle_errors
def start(ctx, book_id):
    """Start reading a book from the library"""
    entry = get_engine(ctx).start_tracking(book_id)
    click.echo(click.style("Started: ", fg='green') + f"{book_label(entry.book)} (tracking ID: {entry.id})")


@read.command()
@click.argument('tracking_id', type=int)
@click.argument('page', type=int)
@click.pass_context
@handle_errors
def progress(ctx, tracking_id, page):
    """Record the page you are on"""
    entry = get_engine(ctx).update_progress(tracking_id, page)
    click.echo(
        f"{book_label(entry.book)}: page {entry.current_page} "
        + click.style(f"({entry.progress_percentage:.1f}%)", fg='cyan')
    )


@read.command()
@click.argument('tracking_id', type=int)
@click.option('--rating', type=int, default=None, help='Rating from 1 to 5')
@click.option('--review', default=None, help='Review text')
@click.pass_context
@handle_errors
def complete(ctx, tracking_id, rating, review):
    """Mark a book you are reading as finished"""
    engine = get_engine(ctx)
    tracking = engine.get_tracking(tracking_id)
    entry = engine.complete(tracking_id, rating=rating, review=review, start_date=tracking.start_date)

    message = click.style("Completed: ", fg='green') + book_label(entry.book)
    if entry.days_to_complete is not None:
        message += f" in {entry.days_to_complete} days"
    click.echo(message)


@read.command()
@click.argument('tracking_id', type=int)
@click.option('--page', type=int, default=None, help='Page you stopped at (defaults to your current page)')
@click.option('--reason', default=None, help='Why you stopped')
@click.pass_context
@handle_errors
def abandon(ctx, tracking_id, page, reason):
    """Give up on a book you are reading"""
    engine = get_engine(ctx)
    tracking = engine.get_tracking(tracking_id)
    if page is None:
        page = tracking.current_page
    entry = engine.abandon(tracking_id, page_at_abandonment=page, reason=reason, start_date=tracking.start_date)
    click.echo(click.style("Abandoned: ", fg='yellow') + f"{book_label(entry.book)} at page {page}")


@read.command()
@click.argument('shelf', type=click.Choice(SHELVES))
@click.argument('entry_id', type=int)
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@handle_errors
def remove(ctx, shelf, entry_id, yes):
    """Move a book back to the library, discarding its entry

    Example:
        booklet read remove completed 3
    """
    engine = get_engine(ctx)
    getter, remover = {
        'tracking': (engine.get_tracking, engine.remove_from_tracking),
        'completed': (engine.get_completed, engine.remove_from_completed),
        'abandoned': (engine.get_abandoned, engine.remove_from_abandoned),
    }[shelf]

    entry = getter(entry_id)
    if not yes:
        click.confirm(
            f"Remove {click.unstyle(book_label(entry.book))} from {shelf}? Its {shelf} details will be lost.",
            abort=True
        )
    remover(entry_id)
    click.echo(click.style("Back in library: ", fg='green') + book_label(entry.book))


@read.command(name='list')
@click.argument('shelf', type=click.Choice(SHELVES), default='tracking')
@click.option('--year', default=ALL_TIME, help='Calendar year to show for completed/abandoned, or "All Time"')
@click.pass_context
@handle_errors
def list_entries(ctx, shelf, year):
    """List the books on a shelf"""
    engine = get_engine(ctx)

    if shelf == 'tracking':
        entries = engine.list_tracking()
        for entry in entries:
            click.echo(
                f"{entry.id:>4}  {book_label(entry.book)}  page {entry.current_page} "
                + click.style(f"({entry.progress_percentage:.1f}%)", fg='cyan')
                + f"  since {format_date(entry.start_date)}"
            )
    elif shelf == 'completed':
        entries = engine.list_completed(year)
        for entry in entries:
            rating = click.style("*" * entry.rating, fg='yellow') if entry.rating else "unrated"
            click.echo(f"{entry.id:>4}  {book_label(entry.book)}  {rating}  {format_date(entry.completion_date)}")
    else:
        entries = engine.list_abandoned(year)
        for entry in entries:
            progress = f"{entry.progress_percentage:.1f}%" if entry.progress_percentage is not None else "-"
            line = f"{entry.id:>4}  {book_label(entry.book)}  {progress}  {format_date(entry.abandonment_date)}"
            if entry.reason:
                line += f"  {entry.reason}"
            click.echo(line)

    if not entries:
        print_empty(f"Nothing in {shelf}.")


@read.command()
@click.argument('book_id', type=int)
@click.pass_context
@handle_errors
def status(ctx, book_id):
    """Show where a book currently is"""
    location = get_engine(ctx).location_of(book_id)
    click.echo(f"Book {book_id}: " + click.style(location.display_name, fg=LOCATION_COLORS[location]))


@read.command()
@click.pass_context
@handle_errors
def library(ctx):
    """List the books you have not started, finished or abandoned"""
    books = get_engine(ctx).library_books()
    if not books:
        print_empty("No books waiting in the library.")
        return
    for item in books:
        print_book_line(item, BookLocation.LIBRARY)


@read.command(name='edit-completed')
@click.argument('completed_id', type=int)
@click.option('--rating', type=int, default=None, help='New rating from 1 to 5')
@click.option('--review', default=None, help='New review')
@click.option('--start-date', type=DATE, default=None, help='New start date (YYYY-MM-DD)')
@click.option('--completion-date', type=DATE, default=None, help='New completion date (YYYY-MM-DD)')
@click.option('--clear', multiple=True, type=click.Choice(['rating', 'review', 'start-date']),
              help='Clear an optional field (repeatable)')
@click.pass_context
@handle_errors
def edit_completed(ctx, completed_id, clear, **values):
    """Edit the rating, review or dates of a finished book"""
    fields = _collect(values, clear)
    entry = get_engine(ctx).update_completed(completed_id, **fields)
    click.echo(click.style("Updated: ", fg='green') + book_label(entry.book))


@read.command(name='edit-abandoned')
@click.argument('abandoned_id', type=int)
@click.option('--page', 'page_at_abandonment', type=int, default=None, help='New page at abandonment')
@click.option('--reason', default=None, help='New reason')
@click.option('--start-date', type=DATE, default=None, help='New start date (YYYY-MM-DD)')
@click.option('--abandonment-date', type=DATE, default=None, help='New abandonment date (YYYY-MM-DD)')
@click.option('--clear', multiple=True, type=click.Choice(['page-at-abandonment', 'reason', 'start-date']),
              help='Clear an optional field (repeatable)')
@click.pass_context
@handle_errors
def edit_abandoned(ctx, abandoned_id, clear, **values):
    """Edit the page, reason or dates of an abandoned book"""
    fields = _collect(values, clear)
    entry = get_engine(ctx).update_abandoned(abandoned_id, **fields)
    click.echo(click.style("Updated: ", fg='green') + book_label(entry.book))


def _collect(values, clear):
    # Dates are typed in local time
    fields = {
        name: to_utc(value) if isinstance(value, datetime) else value
        for name, value in values.items() if value is not None
    }
    for name in clear:
        fields[name.replace('-', '_')] = None
    if not fields:
        raise click.UsageError("Nothing to change. Pass at least one option.")
    return fields
