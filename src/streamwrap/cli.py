
"""CLI implementation for streamwrap."""

import json
import logging
from typing import Optional

import typer

from . import open_stream
from .core.model import LockError, StreamError
from .io.base import DEFAULT_CHUNK_SIZE
from .io.local import Stream

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Copy, parse and inspect byte streams.")


def _release(stream: Stream, source: str) -> None:
    """Close what we opened; standard channels are only detached."""
    if source == "-":
        stream.detach()
    else:
        stream.close()


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log debug output to stderr"),
):
    """Copy, parse and inspect byte streams. Use '-' for stdin/stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def copy(
    source: str = typer.Argument(..., help="File to copy from, or '-' for stdin"),
    target: str = typer.Argument(..., help="File to copy to, or '-' for stdout"),
    max_length: Optional[int] = typer.Option(None, "--max-length", min=0, help="Copy at most N bytes"),
    chunk_size: int = typer.Option(DEFAULT_CHUNK_SIZE, "--chunk-size", min=1, help="Chunk size of the copy loop"),
    append: bool = typer.Option(False, "--append", help="Append to TARGET instead of truncating it"),
    lock: bool = typer.Option(False, "--lock", help="Hold an exclusive lock on TARGET while copying"),
):
    """Copy bytes from SOURCE to TARGET."""
    try:
        src = open_stream(source, "rb")
    except StreamError as e:
        _fail(str(e))
    try:
        dst = open_stream(target, "ab" if append else "wb")
    except StreamError as e:
        _release(src, source)
        _fail(str(e))

    try:
        if lock and dst.is_lockable():
            dst.lock_exclusive(non_blocking=True)
        copied = src.copy_to_stream(dst, max_length=max_length, chunk_size=chunk_size)
    except LockError as e:
        _fail(f"{target} is locked by another process." if e.would_block else str(e))
    except StreamError as e:
        _fail(str(e))
    finally:
        _release(src, source)
        _release(dst, target)

    logger.info("Copied %d bytes from %s to %s", copied, source, target)


@app.command("csv")
def csv_records(
    source: str = typer.Argument(..., help="CSV file, or '-' for stdin"),
    delimiter: str = typer.Option(",", "--delimiter", help="Field delimiter"),
    quote: str = typer.Option('"', "--quote", help="Quote character"),
    escape: str = typer.Option("\\", "--escape", help="Escape character"),
    encoding: str = typer.Option("utf-8", "--encoding", help="Text encoding of SOURCE"),
):
    """Print every non-empty CSV record of SOURCE as a JSON line."""
    try:
        stream = open_stream(source, "rb")
    except StreamError as e:
        _fail(str(e))

    try:
        while not stream.eof():
            record = stream.read_csv(delimiter=delimiter, quote=quote, escape=escape, encoding=encoding)
            if record:
                typer.echo(json.dumps(record))
    except StreamError as e:
        _fail(str(e))
    finally:
        _release(stream, source)


@app.command()
def stat(
    source: str = typer.Argument(..., help="File to inspect, or '-' for stdin"),
):
    """Print metadata and stat of SOURCE as JSON."""
    try:
        stream = open_stream(source, "rb")
    except StreamError as e:
        _fail(str(e))

    try:
        obj = {
            "metadata": stream.get_metadata(),
            "stat": stream.get_stat(),
            "lockable": stream.is_lockable(),
            "remote": stream.is_remote(),
        }
    except StreamError as e:
        _fail(str(e))
    finally:
        _release(stream, source)

    typer.echo(json.dumps(obj, indent=2))


if __name__ == "__main__":
    app()
