"""Stream-to-stream copy: direct handle transfer or the generic chunk loop."""

from __future__ import annotations
import enum
import errno
import logging

from ..core.model import StreamRuntimeError
from .base import ByteStream, NATIVE_COPY_BUFSIZE

logger = logging.getLogger(__name__)


class Endpoint(enum.Enum):
    HANDLE = "handle"      # Stream wrapping a native handle
    GENERIC = "generic"    # any other implementation of the contract


class CopyPath(enum.Enum):
    NATIVE = "native"
    GENERIC = "generic"


def endpoint(stream) -> Endpoint:
    from .local import Stream
    return Endpoint.HANDLE if isinstance(stream, Stream) else Endpoint.GENERIC


def select_path(source, target) -> CopyPath:
    """Direct handle transfer is only possible when both ends expose a native handle."""
    if endpoint(source) is Endpoint.HANDLE and endpoint(target) is Endpoint.HANDLE:
        return CopyPath.NATIVE
    return CopyPath.GENERIC


def _write_all(handle, data) -> None:
    view = memoryview(data)
    while view:
        written = handle.write(view)
        if not written:
            raise BlockingIOError(errno.EAGAIN, "Target handle accepted no data.")
        view = view[written:]


def native_copy(src, dst, max_length: int | None) -> tuple[int, bool]:
    """Copy between raw handles; returns (bytes copied, source exhausted).

    OS errors propagate untouched, the caller decides how to report them.
    """
    copied = 0
    exhausted = False
    while max_length is None or copied < max_length:
        want = NATIVE_COPY_BUFSIZE if max_length is None else min(NATIVE_COPY_BUFSIZE, max_length - copied)
        chunk = src.read(want)
        if not chunk:
            # None means a non-blocking source had nothing ready
            exhausted = chunk is not None
            break
        _write_all(dst, chunk)
        copied += len(chunk)
    dst.flush()
    return copied, exhausted


def generic_copy(source: ByteStream, target: ByteStream, max_length: int | None, chunk_size: int) -> int:
    """Chunked read/write loop over the public contract only."""
    copied = 0
    try:
        while not source.eof() and (max_length is None or copied < max_length):
            size = chunk_size if max_length is None else min(chunk_size, max_length - copied)
            copied += target.write(source.read(size))
    except Exception as exc:
        raise StreamRuntimeError(f"Failed copying stream content to another stream: {exc}") from exc
    logger.debug("Generic copy moved %d bytes in chunks of %d", copied, chunk_size)
    return copied
