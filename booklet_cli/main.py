# booklet_cli/main.py
import click
from booklet import __version__
from booklet.config import Settings, configure_logging
from .commands.book import book
from .commands.read import read
from .commands.stats import stats
from .commands.backup import backup


@click.group()
@click.version_option(__version__, prog_name="booklet")
@click.option('--db-path', type=click.Path(dir_okay=False), default=None,
              help='Path to the library database (defaults to BOOKLET_DB_PATH or ~/.booklet/booklet.db)')
@click.option('--verbose', is_flag=True, help='Log what is happening')
@click.pass_context
def cli(ctx, db_path, verbose):
    """Booklet: personal library and reading tracker"""
    settings = Settings.from_env(db_path)
    configure_logging("INFO" if verbose else settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj['settings'] = settings


cli.add_command(book)
cli.add_command(read)
cli.add_command(stats)
cli.add_command(backup)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
