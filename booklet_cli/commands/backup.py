# booklet_cli/commands/backup.py
import click
from booklet.services.backup import BackupManager
from ..utils import get_database, handle_errors


def _manager(ctx) -> BackupManager:
    settings = ctx.find_root().obj.get('settings')
    return BackupManager(get_database(ctx), settings.backup_extension if settings else None)


@click.group()
def backup():
    """Back up and restore the library database"""
    pass


@backup.command()
@click.argument('destination', type=click.Path(), default='.')
@click.pass_context
@handle_errors
def create(ctx, destination):
    """Write a compressed backup to DESTINATION (a file or a directory)

    Example:
        booklet backup create ~/Backups
    """
    path = _manager(ctx).backup(destination)
    click.echo(click.style("Backup written: ", fg='green') + str(path))


@backup.command()
@click.argument('source', type=click.Path())
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@handle_errors
def restore(ctx, source, yes):
    """Replace the library with the contents of a backup

    The backup is checked before anything is replaced; a bad file leaves the
    current library untouched.
    """
    manager = _manager(ctx)
    manager.verify(source)
    if not yes:
        click.confirm("Replace your current library with this backup?", abort=True)
    manager.restore(source)
    click.echo(click.style("Library restored from ", fg='green') + source)


@backup.command()
@click.argument('source', type=click.Path())
@click.pass_context
@handle_errors
def verify(ctx, source):
    """Check that a backup can be restored"""
    tables = _manager(ctx).verify(source)
    click.echo(click.style("Backup is valid. ", fg='green') + f"Tables: {', '.join(tables)}")
