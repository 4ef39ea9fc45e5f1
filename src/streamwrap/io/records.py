"""CSV record formatting and parsing over line reads."""

import csv
import io
from typing import Any, Callable, Iterator, List, Sequence

from ..core.model import LengthError, LogicError


def validate_dialect(delimiter: str, quote: str, escape: str) -> None:
    """Check the character triple before any I/O happens."""
    for label, char in (("Delimiter", delimiter), ("Quote", quote), ("Escape", escape)):
        if not isinstance(char, str) or len(char) != 1:
            raise LengthError(f"{label} character should be 1 character string. Got {char!r}.")
    if len({delimiter, quote, escape}) != 3:
        raise LogicError(
            f"CSV delimiter ({delimiter}), quote ({quote}) and escape character "
            f"({escape}) should all be unique."
        )


def format_record(fields: Sequence[Any], delimiter: str, quote: str, escape: str, eol: str) -> str:
    buf = io.StringIO()
    # "\r\n" as terminator makes the writer quote fields holding either character
    writer = csv.writer(buf, delimiter=delimiter, quotechar=quote, escapechar=escape,
                        doublequote=True, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(fields)
    return buf.getvalue()[:-2] + eol


def parse_record(first_line: str, next_line: Callable[[], str],
                 delimiter: str, quote: str, escape: str) -> List[str]:
    """Parse one record; `next_line` is only consulted while a quoted field is open."""
    def lines() -> Iterator[str]:
        yield first_line
        while line := next_line():
            yield line

    reader = csv.reader(lines(), delimiter=delimiter, quotechar=quote, escapechar=escape,
                        doublequote=True, strict=True)
    return next(reader, [])
