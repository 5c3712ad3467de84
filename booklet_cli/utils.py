# booklet_cli/utils.py
import functools
from datetime import datetime
from typing import Optional

import click

from booklet.exceptions import BookletError
from booklet.sa.database import Database
from booklet.sa.models import Book, to_local
from booklet.services.lifecycle import BookLocation, LifecycleEngine

DATE_FORMAT = '%Y-%m-%d'

LOCATION_COLORS = {
    BookLocation.LIBRARY: 'white',
    BookLocation.TRACKING: 'cyan',
    BookLocation.COMPLETED: 'green',
    BookLocation.ABANDONED: 'yellow',
}


class CommandError(click.ClickException):
    """A core error shown to the user in red, exit code 1"""

    def show(self, file=None):
        click.echo(click.style(f"Error: {self.format_message()}", fg='red'), err=True)


def handle_errors(func):
    """Turn BookletError raised by a command into a CommandError"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BookletError as e:
            raise CommandError(str(e)) from e
    return wrapper


def get_database(ctx: click.Context) -> Database:
    """Open the library database once per invocation, creating the schema if needed"""
    obj = ctx.find_root().ensure_object(dict)
    if 'db' not in obj:
        settings = obj.get('settings')
        db = Database(settings.db_path if settings else None)
        db.init_db()
        obj['db'] = db
        ctx.find_root().call_on_close(db.close)
    return obj['db']


def get_engine(ctx: click.Context) -> LifecycleEngine:
    return LifecycleEngine(get_database(ctx))


def format_date(value: Optional[datetime]) -> str:
    return to_local(value).strftime(DATE_FORMAT) if value else '-'


def book_label(book: Optional[Book]) -> str:
    """One-line description of a book; orphaned entries have no book"""
    if book is None:
        return click.style("(missing book)", fg='red')
    label = click.style(book.title, fg='cyan') + f" by {book.author}"
    if book.series_display:
        label += click.style(f" [{book.series_display}]", fg='blue')
    return label


def print_book_line(book: Book, location: Optional[BookLocation] = None) -> None:
    line = f"{book.id:>4}  {book_label(book)}  ({book.page_count} pages)"
    if location is not None:
        line += "  " + click.style(location.display_name, fg=LOCATION_COLORS[location])
    click.echo(line)


def print_book_details(book: Book, location: BookLocation) -> None:
    click.echo(click.style(book.title, fg='cyan', bold=True))
    rows = [
        ("ID", book.id),
        ("Author", book.author),
        ("Pages", book.page_count),
        ("Series", book.series_display),
        ("Genre", book.genre),
        ("Cover", book.cover_url),
        ("Added", format_date(book.date_added)),
        ("Location", location.display_name),
    ]
    for name, value in rows:
        if value:
            click.echo(click.style(f"{name}: ", fg='blue') + str(value))
    if book.synopsis:
        click.echo("\n" + book.synopsis)


def print_empty(message: str) -> None:
    click.echo(click.style(message, fg='yellow'))
