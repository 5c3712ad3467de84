# booklet_cli/commands/stats.py
import click
from booklet.sa.repositories.reading import ALL_TIME
from booklet.services.statistics import ReadingStatistics
from ..utils import get_engine, handle_errors

BAR_WIDTH = 30


def _label(name: str) -> str:
    return click.style(f"{name}: ", fg='blue')


@click.command()
@click.option('--year', default=ALL_TIME, help='Calendar year to report on, or "All Time"')
@click.pass_context
@handle_errors
def stats(ctx, year):
    """Show reading statistics"""
    statistics = ReadingStatistics(get_engine(ctx))
    summary = statistics.summary(year)

    click.echo(click.style(f"Reading statistics ({summary.period_label})", fg='cyan', bold=True))
    click.echo(_label("Books completed") + str(summary.total_completed))
    click.echo(_label("Pages read") + f"{summary.total_pages_read:,}")
    click.echo(_label("Books abandoned") + str(summary.total_abandoned))
    if summary.average_days_to_finish is not None:
        click.echo(_label("Average days to finish") + f"{summary.average_days_to_finish:.1f}")
    click.echo(_label("Reading streak") + f"{summary.reading_streak} days")

    if summary.total_completed:
        click.echo("\n" + click.style("Ratings", fg='blue'))
        largest = max(summary.rating_split.values()) or 1
        for rating in range(5, 0, -1):
            count = summary.rating_split[rating]
            bar = "#" * round(BAR_WIDTH * count / largest)
            click.echo(f"  {rating} {click.style(bar, fg='yellow')} {count}")

        click.echo("\n" + click.style("By month", fg='blue'))
        for month in summary.monthly:
            if month.books_count:
                click.echo(f"  {month.month_name}  {month.books_count} books, {month.pages_count:,} pages")

    for title, ranking in (("Top authors", summary.top_authors), ("Top genres", summary.top_genres)):
        if ranking:
            click.echo("\n" + click.style(title, fg='blue'))
            for name, count in ranking:
                click.echo(f"  {name} ({count})")

    years = statistics.available_periods()
    if len(years) > 1:
        click.echo("\n" + _label("Years with completions") + ", ".join(years[1:]))
