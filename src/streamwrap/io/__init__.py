"""I/O layer for streamwrap - builds Stream objects over native handles."""

import asyncio
import io
import os
import sys
import tempfile

from ..core.capabilities import writable_from_mode
from ..core.model import DomainError, StreamRuntimeError
from .base import ByteStream, DEFAULT_CHUNK_SIZE, DEFAULT_ENCODING, DEFAULT_MEMORY_LIMIT
from .local import Stream, AsyncStream
from .adapter import RawStreamAdapter


def for_handle(handle) -> Stream:
    """Wrap an already open binary handle."""
    return Stream(handle)


def for_temp_file() -> Stream:
    """Anonymous temporary file, removed once the stream is closed."""
    return Stream(tempfile.TemporaryFile(mode="w+b"))


def _open(file_name, mode: str):
    mode = mode.replace("t", "")
    if "b" not in mode:
        mode += "b"
    if "c" not in mode:
        return open(file_name, mode)
    # "c": create when missing, never truncate
    flags = os.O_CREAT | (os.O_RDWR if "+" in mode else os.O_WRONLY)
    fd = os.open(file_name, flags, 0o666)
    try:
        return open(fd, "r+b" if "+" in mode else "wb")
    except (OSError, ValueError):
        os.close(fd)
        raise


def for_file_name(file_name, mode: str) -> Stream:
    """Open `file_name` with an fopen-style mode (r, w, a, x, c, with optional +)."""
    try:
        handle = _open(file_name, mode)
    except (OSError, ValueError) as exc:
        raise StreamRuntimeError(
            f"Failed opening stream handle for {os.fspath(file_name)!r} in {mode!r} mode."
        ) from exc
    return Stream(handle)


class _ChannelView(io.BufferedIOBase):
    """Binary view of a process channel's buffer; closing the view leaves the channel open."""

    stream_type = "channel"

    def __init__(self, buffer, mode: str):
        super().__init__()
        self._buffer = buffer
        self.mode = mode

    @property
    def name(self):
        return getattr(self._buffer, "name", None)

    def readable(self) -> bool:
        return "r" in self.mode

    def writable(self) -> bool:
        return writable_from_mode(self.mode)

    def read(self, size=-1):
        return self._buffer.read(size)

    def read1(self, size=-1):
        return self._buffer.read(size)

    def readline(self, size=-1):
        return self._buffer.readline(size)

    def write(self, data):
        return self._buffer.write(data)

    def flush(self):
        if not self.closed and not self._buffer.closed:
            self._buffer.flush()


def _std_channel(text_stream, mode: str) -> Stream:
    try:
        fd = text_stream.fileno()
    except (AttributeError, OSError, ValueError):
        # replaced channel without a descriptor (test runners, embedded interpreters)
        return Stream(_ChannelView(text_stream.buffer, mode))
    if writable_from_mode(mode):
        text_stream.flush()
    return Stream(open(fd, mode, closefd=False))


def for_stdin() -> Stream:
    return _std_channel(sys.stdin, "rb")


def for_stdout() -> Stream:
    """Standard output; closing the stream never closes the process channel."""
    return _std_channel(sys.stdout, "wb")


def for_stderr() -> Stream:
    return _std_channel(sys.stderr, "wb")


def for_memory(limit: int | None = None) -> Stream:
    """In-memory stream; with a limit, data spills to a temporary file past `limit` bytes."""
    if limit is not None and limit < 0:
        raise DomainError(f"Can not set stream memory limit to less than 0 (got {limit}).")
    if limit is None:
        return Stream(io.BytesIO())
    return Stream(tempfile.SpooledTemporaryFile(max_size=limit or DEFAULT_MEMORY_LIMIT, mode="w+b"))


def open_stream(source, mode: str = "rb") -> Stream:
    """Factory function to create a Stream from a handle, a path or "-"."""
    if hasattr(source, "read") or hasattr(source, "write"):
        return for_handle(source)
    if str(source) == "-":
        return for_stdout() if writable_from_mode(mode) else for_stdin()
    return for_file_name(source, mode)


async def open_stream_async(source, mode: str = "rb") -> AsyncStream:
    """Factory function to create an AsyncStream; opening itself runs in a worker thread."""
    return AsyncStream(await asyncio.to_thread(open_stream, source, mode))


__all__ = [
    "Stream", "AsyncStream", "RawStreamAdapter", "ByteStream",
    "DEFAULT_CHUNK_SIZE", "DEFAULT_ENCODING", "DEFAULT_MEMORY_LIMIT",
    "for_handle", "for_temp_file", "for_file_name", "for_stdin", "for_stdout",
    "for_stderr", "for_memory", "open_stream", "open_stream_async",
]
