# booklet_cli/commands/book.py
import click
from booklet.exceptions import NotFoundError
from booklet.sa.repositories.book import BookRepository
from ..utils import (
    get_database, get_engine, handle_errors,
    print_book_details, print_book_line, print_empty
)

OPTIONAL_FIELDS = ('cover_url', 'series', 'series_number', 'synopsis', 'genre')


@click.group()
def book():
    """Manage the books in your library"""
    pass


@book.command()
@click.option('--title', prompt=True, help='Book title')
@click.option('--author', prompt=True, help='Book author')
@click.option('--pages', 'page_count', type=int, prompt='Page count', help='Number of pages')
@click.option('--cover-url', default=None, help='Cover image URL')
@click.option('--series', default=None, help='Series name')
@click.option('--series-number', type=float, default=None, help='Position in the series (e.g. 2 or 2.5)')
@click.option('--synopsis', default=None, help='Short synopsis')
@click.option('--genre', default=None, help='Genre')
@click.pass_context
@handle_errors
def add(ctx, title, author, page_count, cover_url, series, series_number, synopsis, genre):
    """Add a book to the library

    Example:
        booklet book add --title Dune --author "Frank Herbert" --pages 412
    """
    with get_database(ctx).get_db() as session:
        new_book = BookRepository(session).create_book(
            title=title,
            author=author,
            page_count=page_count,
            cover_url=cover_url,
            series=series,
            series_number=series_number,
            synopsis=synopsis,
            genre=genre
        )
    click.echo(click.style("Added: ", fg='green') + f"{new_book.title} (ID: {new_book.id})")


@book.command(name='list')
@click.pass_context
@handle_errors
def list_books(ctx):
    """List every book with where it currently is"""
    with get_database(ctx).get_db() as session:
        books = BookRepository(session).list_books()

    if not books:
        print_empty("Your library is empty.")
        return

    for item, location in get_engine(ctx).books_with_location(books):
        print_book_line(item, location)
    click.echo(f"\n{len(books)} books")


@book.command()
@click.argument('book_id', type=int)
@click.pass_context
@handle_errors
def show(ctx, book_id):
    """Show the details of one book"""
    with get_database(ctx).get_db() as session:
        item = BookRepository(session).get_by_id(book_id)
    if item is None:
        raise NotFoundError("Book", book_id)
    print_book_details(item, get_engine(ctx).location_of(book_id))


@book.command()
@click.argument('book_id', type=int)
@click.option('--title', default=None, help='New title')
@click.option('--author', default=None, help='New author')
@click.option('--pages', 'page_count', type=int, default=None, help='New page count')
@click.option('--cover-url', default=None, help='New cover image URL')
@click.option('--series', default=None, help='New series name')
@click.option('--series-number', type=float, default=None, help='New position in the series')
@click.option('--synopsis', default=None, help='New synopsis')
@click.option('--genre', default=None, help='New genre')
@click.option('--clear', multiple=True, type=click.Choice([name.replace('_', '-') for name in OPTIONAL_FIELDS]),
              help='Clear an optional field (repeatable)')
@click.pass_context
@handle_errors
def edit(ctx, book_id, clear, **values):
    """Edit a book's metadata; only the options given are changed"""
    fields = {name: value for name, value in values.items() if value is not None}
    for name in clear:
        fields[name.replace('-', '_')] = None

    if not fields:
        raise click.UsageError("Nothing to change. Pass at least one option.")

    with get_database(ctx).get_db() as session:
        updated = BookRepository(session).update_book(book_id, **fields)
    click.echo(click.style("Updated: ", fg='green') + f"{updated.title} (ID: {updated.id})")


@book.command()
@click.argument('book_id', type=int)
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@handle_errors
def delete(ctx, book_id, yes):
    """Delete a book and all of its reading history"""
    with get_database(ctx).get_db() as session:
        item = BookRepository(session).get_by_id(book_id)
    if item is None:
        raise NotFoundError("Book", book_id)

    engine = get_engine(ctx)
    location = engine.location_of(book_id)
    if not yes:
        click.confirm(
            f"Delete '{item.title}' ({location.display_name}) and its reading history?",
            abort=True
        )
    engine.delete_book(book_id)
    click.echo(click.style(f"Deleted book {book_id}", fg='green'))


@book.command()
@click.argument('query')
@click.option('--limit', type=int, default=None, help='Maximum number of results')
@click.pass_context
@handle_errors
def search(ctx, query, limit):
    """Search books by title or author"""
    with get_database(ctx).get_db() as session:
        books = BookRepository(session).search_books(query, limit)
    if not books:
        print_empty(f"No books match '{query}'.")
        return
    for item in books:
        print_book_line(item)


@book.command(name='author')
@click.argument('name')
@click.pass_context
@handle_errors
def by_author(ctx, name):
    """List the books by an author"""
    with get_database(ctx).get_db() as session:
        books = BookRepository(session).get_books_by_author(name)
    _print_books(books, f"No books by {name}.")


@book.command(name='series')
@click.argument('name')
@click.pass_context
@handle_errors
def by_series(ctx, name):
    """List the books in a series, in series order"""
    with get_database(ctx).get_db() as session:
        books = BookRepository(session).get_books_by_series(name)
    _print_books(books, f"No books in series {name}.")


@book.command(name='genre')
@click.argument('name')
@click.pass_context
@handle_errors
def by_genre(ctx, name):
    """List the books in a genre"""
    with get_database(ctx).get_db() as session:
        books = BookRepository(session).get_books_by_genre(name)
    _print_books(books, f"No books in genre {name}.")


def _print_books(books, empty_message):
    if not books:
        print_empty(empty_message)
        return
    for item in books:
        print_book_line(item)
