"""Expose a stream through the standard `io.RawIOBase` interface."""

from __future__ import annotations
import io
import operator

from ..core.capabilities import descriptor
from ..core.model import StreamError
from ..core.stream_base import AbstractStream


def _integer(value, name: str) -> int:
    """Accept real integers only; floats and numeric strings are refused, not truncated."""
    try:
        return operator.index(value)
    except TypeError as exc:
        raise OSError(f"{name} must be an integer, got {value!r}.") from exc


class RawStreamAdapter(io.RawIOBase):
    """Raw I/O view of a stream.

    Every stream error surfaces as ``OSError`` with the original message and the
    original exception chained, so the adapter can sit under ``io.BufferedReader``
    or be handed to any code expecting a plain binary file object.
    """

    def __init__(self, stream: AbstractStream):
        super().__init__()
        self._stream = stream

    @property
    def stream(self) -> AbstractStream:
        return self._stream

    def _call(self, operation, *args):
        try:
            return operation(*args)
        except (StreamError, TypeError) as exc:
            raise OSError(str(exc)) from exc

    # --- capabilities ---
    def readable(self) -> bool:
        return self._stream.is_readable()

    def writable(self) -> bool:
        return self._stream.is_writable()

    def seekable(self) -> bool:
        return self._stream.is_seekable()

    def fileno(self) -> int:
        handle = self._stream.get_handle() if hasattr(self._stream, "get_handle") else None
        fd = None if handle is None else descriptor(handle)
        if fd is None:
            raise io.UnsupportedOperation("Stream has no file descriptor.")
        return fd

    # --- I/O ---
    def read(self, size=-1):
        return super().read(_integer(size, "size"))

    def readinto(self, buffer) -> int:
        with memoryview(buffer) as view, view.cast("B") as target:
            data = self._call(self._stream.read, len(target))
            target[:len(data)] = data
        return len(data)

    def write(self, data) -> int:
        return self._call(self._stream.write, bytes(data))

    def seek(self, offset, whence=io.SEEK_SET) -> int:
        self._call(self._stream.seek, _integer(offset, "offset"), _integer(whence, "whence"))
        return self.tell()

    def tell(self) -> int:
        position = self._call(self._stream.tell)
        if position is None:
            raise OSError("Stream is closed.")
        return position

    def truncate(self, size=None) -> int:
        size = self.tell() if size is None else _integer(size, "size")
        self._call(self._stream.truncate, size)
        return size

    # --- extras ---
    def metadata(self, key: str | None = None):
        return self._stream.get_metadata() if key is None else self._stream.get_metadata_key(str(key))

    def size(self) -> int | None:
        return self._stream.get_size()

    def detach(self):
        """Hand the underlying handle out; the adapter and the stream become unusable."""
        handle = self._stream.detach()
        super().close()
        return handle

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._call(self._stream.close)
        finally:
            super().close()
