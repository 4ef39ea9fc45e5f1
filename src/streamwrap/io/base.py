"""Shared protocol and defaults for the I/O layer."""

from typing import Protocol, runtime_checkable


DEFAULT_CHUNK_SIZE = 1024                 # generic copy loop
NATIVE_COPY_BUFSIZE = 64 * 1024           # handle-to-handle copy
DEFAULT_MEMORY_LIMIT = 2 * 1024 * 1024    # spill threshold for for_memory(0)
DEFAULT_ENCODING = "utf-8"


@runtime_checkable
class ByteStream(Protocol):
    """The part of the stream contract the generic copy loop relies on."""

    def is_readable(self) -> bool: ...

    def is_writable(self) -> bool: ...

    def eof(self) -> bool: ...

    def read(self, length: int) -> bytes:
        """Return up to `length` bytes, b"" at end of stream."""
        ...

    def write(self, data: bytes) -> int:
        """Write `data`, returning the number of bytes written."""
        ...
