import contextlib
from typing import Iterator

from typer import Exit
from typer import echo

from geotypes.exceptions import BaseError


def cli_error(message: str):
    echo(message, err=True)
    raise Exit(code=1)


@contextlib.contextmanager
def handle_errors() -> Iterator[None]:
    """Report library errors on STDERR and exit with code 1."""
    try:
        yield
    except BaseError as e:
        cli_error(str(e).rstrip())
