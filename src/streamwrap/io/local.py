"""Stream over a local native handle, plus its asyncio wrapper."""

from __future__ import annotations
import asyncio
import contextlib
import csv
import enum
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, List, Sequence

from ..core.capabilities import (
    StreamMetadata, descriptor, is_blocking_handle, is_handle, probe, stat_handle,
)
from ..core.locking import apply_lock, describe
from ..core.model import (
    DomainError, InvalidArgumentError, LockMode, LockRequest, LockResult,
    NotLockableError, NotReadableError, NotSeekableError, NotWritableError,
    StreamError, StreamRuntimeError, Whence,
)
from ..core.stream_base import AbstractStream
from .base import DEFAULT_CHUNK_SIZE, DEFAULT_ENCODING
from .copy import CopyPath, generic_copy, native_copy, select_path
from .records import format_record, parse_record, validate_dialect

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Open:
    handle: Any


class _Ended(enum.Enum):
    CLOSED = "closed"
    DETACHED = "detached"


class Stream(AbstractStream):
    """Exclusive owner of one binary handle (file, pipe, memory buffer or std channel)."""

    def __init__(self, handle: BinaryIO):
        if not is_handle(handle) or handle.closed:
            raise InvalidArgumentError("Expecting an open binary stream handle.")
        self._state: _Open | _Ended = _Open(handle)
        # mirrors the stdio end-of-file indicator: set by reads that hit the end, cleared by seek
        self._eof = False
        logger.debug("Wrapped %s handle %r", type(handle).__name__, getattr(handle, "name", None))

    def __del__(self):
        if isinstance(getattr(self, "_state", None), _Open):
            with contextlib.suppress(StreamError):
                self.close()

    # ------------------------------------------------------------------ #
    def _handle(self):
        state = self._state
        if isinstance(state, _Open) and not state.handle.closed:
            return state.handle
        return None

    def get_handle(self):
        return self._handle()

    def is_open(self) -> bool:
        return self._handle() is not None

    def close(self) -> None:
        handle = self._handle()
        if handle is None:
            if isinstance(self._state, _Open):
                self._state = _Ended.CLOSED
            return
        if self.is_lockable():
            self._release_lock()
        self._state = _Ended.CLOSED
        logger.debug("Closing %r", getattr(handle, "name", None))
        try:
            handle.close()
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError("Failed closing stream.") from exc

    def _release_lock(self) -> None:
        """Best-effort unlock before close; a failure here is logged and dropped."""
        try:
            self.unlock(non_blocking=True)
        except StreamError as exc:
            logger.debug("Ignoring failed unlock on close: %s", exc)

    def detach(self):
        handle = self._handle()
        if isinstance(self._state, _Open):
            self._state = _Ended.DETACHED
            logger.debug("Detached %r", getattr(handle, "name", None))
        return handle

    # --- metadata ---
    def metadata(self) -> StreamMetadata | None:
        handle = self._handle()
        return None if handle is None else probe(handle)

    def get_metadata(self) -> Dict[str, Any]:
        meta = super().get_metadata()
        if meta:
            meta["eof"] = self._eof
        return meta

    def get_stat(self) -> Dict[str, Any]:
        handle = self._handle()
        if handle is None:
            return {}
        try:
            return stat_handle(handle)
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError("Failed reading stream stat.") from exc

    # --- locking ---
    def lock(self, mode: LockMode, blocking: bool = True) -> LockResult:
        if not self.is_lockable():
            raise NotLockableError(self)
        request = LockRequest(mode, blocking)
        handle = self._handle()
        logger.debug("Lock request (%s) on %r", describe(request), getattr(handle, "name", None))
        if mode is LockMode.UNLOCK and self.is_writable():
            try:
                handle.flush()
            except (OSError, ValueError) as exc:
                raise StreamRuntimeError("Failed flushing stream before unlock.") from exc
        return apply_lock(descriptor(handle), request)

    # --- positioned I/O ---
    def eof(self) -> bool:
        return not self.is_open() or self._eof

    def seek(self, offset: int, whence: int = Whence.SET) -> None:
        try:
            whence = Whence(whence)
        except ValueError:
            raise DomainError(
                f"Whence for seeking should be one of SET (0), CUR (1) or END (2), but got {whence!r}."
            ) from None
        if not self.is_seekable():
            raise NotSeekableError(self)
        try:
            self._handle().seek(offset, whence)
        except (OSError, ValueError, OverflowError) as exc:
            raise StreamRuntimeError(
                f"Failed seeking stream (offset: {offset}, whence: {whence.name})."
            ) from exc
        self._eof = False

    def tell(self) -> int | None:
        handle = self._handle()
        if handle is None:
            return None
        try:
            return handle.tell()
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError("Failed returning stream pointer position.") from exc

    def read(self, length: int) -> bytes:
        if length < 0:
            raise DomainError(f"Reading length can not be less than 0. Got {length}.")
        if not self.is_readable():
            raise NotReadableError(self)
        try:
            data = self._handle().read(length)
        except BlockingIOError:
            return b""
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError(f"Failed reading from stream. Requested {length} bytes.") from exc
        if data is None:
            return b""
        if not data and length:
            self._eof = True
        return data

    def write(self, data: bytes) -> int:
        if not self.is_writable():
            raise NotWritableError(self)
        handle = self._handle()
        try:
            written = handle.write(data)
            handle.flush()
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError("Failed writing string to stream.") from exc
        return 0 if written is None else written

    def truncate(self, length: int) -> None:
        if length < 0:
            raise DomainError(f"Can not truncate stream to less than 0. Got {length}.")
        if not self.is_writable():
            raise NotWritableError(self)
        handle = self._handle()
        try:
            handle.truncate(length)
            self._pad(handle, length)
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError(f"Failed truncating stream to {length} length.") from exc

    @staticmethod
    def _pad(handle, length: int) -> None:
        # memory buffers keep their size when truncated past the end
        if not handle.seekable():
            return
        position = handle.tell()
        end = handle.seek(0, os.SEEK_END)
        if end < length:
            handle.write(b"\0" * (length - end))
            handle.flush()
        handle.seek(position, os.SEEK_SET)

    def set_blocking(self, blocking: bool) -> None:
        handle = self._handle()
        fd = None if handle is None else descriptor(handle)
        if fd is None:
            raise StreamRuntimeError("Failed setting blocking mode on a stream.")
        try:
            os.set_blocking(fd, blocking)
        except OSError as exc:
            raise StreamRuntimeError("Failed setting blocking mode on a stream.") from exc

    def get_contents(self) -> bytes:
        if not self.is_readable():
            raise NotReadableError(self)
        try:
            data = self._handle().read()
        except BlockingIOError:
            return b""
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError("Failed reading from stream.") from exc
        if data is None:
            return b""
        self._eof = True
        return data

    def output(self, sink: BinaryIO | None = None) -> int:
        """Pass everything left in the stream through to `sink` (stdout by default)."""
        if not self.is_readable():
            raise NotReadableError(self)
        sink = sys.stdout.buffer if sink is None else sink
        try:
            passed, exhausted = native_copy(self._handle(), sink, None)
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError("Failed reading from stream.") from exc
        if exhausted:
            self._eof = True
        return passed

    # --- lines and records ---
    def _next_line(self, length: int) -> bytes:
        handle = self._handle()
        try:
            line = handle.readline(length or -1)
        except BlockingIOError:
            return b""
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError(f"Failed reading line from stream. Requested length: {length}.") from exc
        if line is None:
            return b""
        # a short line from a non-blocking handle only means nothing more is ready yet
        if not line.endswith(b"\n") and (not length or len(line) < length) and is_blocking_handle(handle):
            self._eof = True
        return line

    def read_line(self, length: int = 0) -> bytes:
        if length < 0:
            raise DomainError(f"Line reading length can not be less than 0. Got {length}.")
        if not self.is_readable():
            raise NotReadableError(self)
        was_eof = self._eof
        line = self._next_line(length)
        if not line:
            # nothing read, but the end was only reached now: an empty last line
            if not was_eof and self._eof:
                return b""
            raise StreamRuntimeError(f"Failed reading line from stream. Requested length: {length}.")
        return line

    def read_csv(self, length: int = 0, delimiter: str = ",", quote: str = '"',
                 escape: str = "\\", encoding: str = DEFAULT_ENCODING) -> List[str]:
        if length < 0:
            raise DomainError(f"CSV reading length can not be less than 0. Got {length}.")
        validate_dialect(delimiter, quote, escape)
        if not self.is_readable():
            raise NotReadableError(self)
        was_eof = self._eof
        first = self._next_line(length)
        if not first:
            if not was_eof and self._eof:
                return []
            raise StreamRuntimeError("Failed reading CSV from stream.")
        try:
            return parse_record(first.decode(encoding),
                                lambda: self._next_line(length).decode(encoding),
                                delimiter, quote, escape)
        except (csv.Error, UnicodeDecodeError) as exc:
            raise StreamRuntimeError("Failed reading CSV from stream.") from exc

    def write_csv(self, fields: Sequence[Any], delimiter: str = ",", quote: str = '"',
                  escape: str = "\\", eol: str = "\n", encoding: str = DEFAULT_ENCODING) -> int:
        validate_dialect(delimiter, quote, escape)
        if not self.is_writable():
            raise NotWritableError(self)
        try:
            line = format_record(fields, delimiter, quote, escape, eol).encode(encoding)
        except (csv.Error, UnicodeEncodeError) as exc:
            raise StreamRuntimeError("Failed writing CSV to stream.") from exc
        return self.write(line)

    # --- copy ---
    def copy_to_stream(self, target: AbstractStream, max_length: int | None = None,
                       chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
        if not self.is_readable():
            raise NotReadableError(self)
        if not target.is_writable():
            raise NotWritableError(target)
        if chunk_size < 1:
            raise DomainError("Chunk size for stream copy can not be less than 1.")
        if max_length is not None and max_length < 0:
            raise DomainError(f"Maximum copy length can not be less than 0. Got {max_length}.")
        path = select_path(self, target)
        logger.debug("Copying via %s path (max_length=%s)", path.value, max_length)
        if path is CopyPath.GENERIC:
            return generic_copy(self, target, max_length, chunk_size)
        try:
            copied, exhausted = native_copy(self._handle(), target.get_handle(), max_length)
        except (OSError, ValueError) as exc:
            raise StreamRuntimeError("Failed copying stream content to another stream.") from exc
        if exhausted:
            self._eof = True
        return copied


class AsyncStream:
    """Asynchronous wrapper - each blocking Stream call runs in a worker thread."""

    def __init__(self, stream: Stream):
        self._stream = stream

    @property
    def stream(self) -> Stream:
        return self._stream

    async def _run(self, operation, *args, **kwargs):
        return await asyncio.to_thread(operation, *args, **kwargs)

    def eof(self) -> bool:
        return self._stream.eof()

    async def read(self, length: int) -> bytes:
        return await self._run(self._stream.read, length)

    async def read_line(self, length: int = 0) -> bytes:
        return await self._run(self._stream.read_line, length)

    async def read_csv(self, length: int = 0, **dialect) -> List[str]:
        return await self._run(self._stream.read_csv, length, **dialect)

    async def get_contents(self) -> bytes:
        return await self._run(self._stream.get_contents)

    async def write(self, data: bytes) -> int:
        return await self._run(self._stream.write, data)

    async def write_line(self, data: bytes, **kwargs) -> int:
        return await self._run(self._stream.write_line, data, **kwargs)

    async def write_csv(self, fields: Sequence[Any], **dialect) -> int:
        return await self._run(self._stream.write_csv, fields, **dialect)

    async def seek(self, offset: int, whence: int = Whence.SET) -> None:
        await self._run(self._stream.seek, offset, whence)

    async def tell(self) -> int | None:
        return await self._run(self._stream.tell)

    async def truncate(self, length: int) -> None:
        await self._run(self._stream.truncate, length)

    async def lock_exclusive(self, non_blocking: bool = False) -> LockResult:
        return await self._run(self._stream.lock_exclusive, non_blocking)

    async def lock_shared(self, non_blocking: bool = False) -> LockResult:
        return await self._run(self._stream.lock_shared, non_blocking)

    async def unlock(self, non_blocking: bool = False) -> LockResult:
        return await self._run(self._stream.unlock, non_blocking)

    async def copy_to_stream(self, target, max_length: int | None = None,
                             chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
        if isinstance(target, AsyncStream):
            target = target.stream
        return await self._run(self._stream.copy_to_stream, target, max_length, chunk_size)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the underlying stream."""
        await self._run(self._stream.close)
