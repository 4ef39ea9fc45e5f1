from __future__ import annotations
import enum
import os
from dataclasses import dataclass


class Whence(enum.IntEnum):
    SET = os.SEEK_SET
    CUR = os.SEEK_CUR
    END = os.SEEK_END


class LockMode(enum.Enum):
    EXCLUSIVE = "exclusive"
    SHARED = "shared"
    UNLOCK = "unlock"


@dataclass(frozen=True, slots=True)
class LockRequest:
    mode: LockMode
    blocking: bool = True


@dataclass(frozen=True, slots=True)
class LockResult:
    acquired: bool
    would_block: bool = False


class StreamError(Exception):
    """Base class of every error raised by streamwrap."""


class InvalidArgumentError(StreamError, TypeError):
    """Raised when something other than a binary stream handle is wrapped."""


class LogicError(StreamError):
    """Raised when an operation's structural precondition is violated."""


class DomainError(LogicError, ValueError):
    """Raised when a numeric argument is out of its legal range."""


class LengthError(LogicError, ValueError):
    """Raised when a single-character argument is not exactly one character."""


class StreamRuntimeError(StreamError, RuntimeError):
    """Raised when the underlying handle fails despite satisfied preconditions."""


class LockError(StreamRuntimeError):
    """Raised when a lock operation fails; `result.would_block` flags contention."""

    def __init__(self, message: str, result: LockResult):
        super().__init__(message)
        self.result = result

    @property
    def would_block(self) -> bool:
        return self.result.would_block


class CapabilityError(LogicError):
    """Raised when a stream is closed or lacks the capability an operation needs."""

    capability: str = "usable"

    def __init__(self, stream):
        if not stream.is_open():
            message = f"Closed stream is not {self.capability}."
        else:
            uri = stream.get_uri()
            subject = "Stream" if uri is None else f'Stream "{uri}"'
            message = (f"{subject} is not {self.capability} "
                       f"(type: {stream.get_type()}; mode: {stream.get_mode()}).")
        super().__init__(message)


class NotReadableError(CapabilityError):
    capability = "readable"


class NotWritableError(CapabilityError):
    capability = "writable"


class NotSeekableError(CapabilityError):
    capability = "seekable"


class NotLockableError(CapabilityError):
    capability = "lockable"
