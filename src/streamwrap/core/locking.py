"""Advisory lock requests mapped onto flock(2)."""

from __future__ import annotations
import errno

try:
    import fcntl
except ImportError:  # no advisory locking outside POSIX
    fcntl = None

from .model import LockError, LockMode, LockRequest, LockResult

LOCKING_SUPPORTED = fcntl is not None

# errno values flock reports for a non-blocking request that meets contention
_CONTENTION = frozenset({errno.EWOULDBLOCK, errno.EAGAIN, errno.EACCES})


def lock_flags(request: LockRequest) -> int:
    flags = {
        LockMode.EXCLUSIVE: fcntl.LOCK_EX,
        LockMode.SHARED: fcntl.LOCK_SH,
        LockMode.UNLOCK: fcntl.LOCK_UN,
    }[request.mode]
    return flags if request.blocking else flags | fcntl.LOCK_NB


def describe(request: LockRequest) -> str:
    return request.mode.value if request.blocking else f"{request.mode.value}, non-blocking"


def apply_lock(fd: int, request: LockRequest) -> LockResult:
    """Issue the lock call; on failure raise LockError carrying the contention flag."""
    try:
        fcntl.flock(fd, lock_flags(request))
    except OSError as exc:
        would_block = not request.blocking and exc.errno in _CONTENTION
        raise LockError(
            f"Failed performing lock operation ({describe(request)}).",
            LockResult(acquired=False, would_block=would_block),
        ) from exc
    return LockResult(acquired=True)
