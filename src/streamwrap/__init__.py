"""streamwrap - one consistent contract over files, pipes, memory buffers and std channels."""

from .core.model import (                                             # re-export
    Whence, LockMode, LockRequest, LockResult,
    StreamError, InvalidArgumentError, LogicError, DomainError, LengthError,
    NotReadableError, NotWritableError, NotSeekableError, NotLockableError,
    StreamRuntimeError, LockError,
)
from .core.stream_base import AbstractStream
from .io import (
    Stream, AsyncStream, RawStreamAdapter,
    for_handle, for_temp_file, for_file_name, for_stdin, for_stdout, for_stderr,
    for_memory, open_stream, open_stream_async,
)


__all__ = [
    "Stream", "AsyncStream", "AbstractStream", "RawStreamAdapter",
    "for_handle", "for_temp_file", "for_file_name", "for_stdin", "for_stdout",
    "for_stderr", "for_memory", "open_stream", "open_stream_async",
    "Whence", "LockMode", "LockRequest", "LockResult",
    "StreamError", "InvalidArgumentError", "LogicError", "DomainError", "LengthError",
    "NotReadableError", "NotWritableError", "NotSeekableError", "NotLockableError",
    "StreamRuntimeError", "LockError",
]
