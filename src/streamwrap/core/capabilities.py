"""Platform probe for binary handles and the capability rules derived from it."""

from __future__ import annotations
import io
import os
import re
import stat
import tempfile
from dataclasses import dataclass
from typing import Any, Dict

from .locking import LOCKING_SUPPORTED

_READABLE_MODE = re.compile(r"[r+]")
_WRITABLE_MODE = re.compile(r"[waxc+]")

_STAT_FIELDS = (
    "dev", "ino", "mode", "nlink", "uid", "gid", "rdev",
    "size", "atime", "mtime", "ctime", "blksize", "blocks",
)


@dataclass(frozen=True, slots=True)
class StreamMetadata:
    mode: str | None
    seekable: bool
    blocked: bool
    local: bool
    lockable: bool
    uri: str | None
    stream_type: str


def is_handle(obj) -> bool:
    """Binary file objects only; text streams and arbitrary objects are rejected."""
    if isinstance(obj, io.TextIOBase):
        return False
    return isinstance(obj, (io.IOBase, tempfile.SpooledTemporaryFile))


def descriptor(handle) -> int | None:
    """Return the OS file descriptor behind `handle`, if it has one."""
    if isinstance(handle, tempfile.SpooledTemporaryFile):
        # fileno() would roll the in-memory buffer over to disk
        return None
    try:
        return handle.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _mode(handle) -> str | None:
    mode = getattr(handle, "mode", None)
    if isinstance(mode, str):
        return mode
    readable, writable = handle.readable(), handle.writable()
    if readable and writable:
        return "r+b"
    if readable:
        return "rb"
    if writable:
        return "wb"
    return None


def _seekable(handle) -> bool:
    try:
        return bool(handle.seekable())
    except (OSError, ValueError):
        return False


def _blocked(fd: int | None) -> bool:
    if fd is None:
        return True
    try:
        return os.get_blocking(fd)
    except OSError:
        return True


def is_blocking_handle(handle) -> bool:
    """Handles without a descriptor count as blocking."""
    return _blocked(descriptor(handle))


def _uri(handle) -> str | None:
    name = getattr(handle, "name", None)
    if isinstance(name, (str, bytes, os.PathLike)):
        return os.fsdecode(name)
    return None


def _stream_type(handle, st: os.stat_result | None, fd: int | None) -> str:
    if fd is None:
        label = getattr(handle, "stream_type", None)
        if isinstance(label, str):
            return label
        if isinstance(handle, io.BytesIO):
            return "memory"
        if isinstance(handle, tempfile.SpooledTemporaryFile):
            return "temp"
        return type(handle).__name__
    if st is None:
        return "unknown"
    if stat.S_ISREG(st.st_mode):
        return "file"
    if stat.S_ISFIFO(st.st_mode):
        return "pipe"
    if stat.S_ISSOCK(st.st_mode):
        return "socket"
    if os.isatty(fd):
        return "tty"
    return "device"


def probe(handle) -> StreamMetadata:
    """Read the live metadata of an open handle. Nothing here is cached."""
    fd = descriptor(handle)
    st = None
    if fd is not None:
        try:
            st = os.fstat(fd)
        except OSError:
            st = None
    stream_type = _stream_type(handle, st, fd)
    return StreamMetadata(
        mode=_mode(handle),
        seekable=_seekable(handle),
        blocked=_blocked(fd),
        local=stream_type != "socket",
        lockable=LOCKING_SUPPORTED and stream_type == "file",
        uri=_uri(handle),
        stream_type=stream_type,
    )


def stat_handle(handle) -> Dict[str, Any]:
    """fstat() fields without the st_ prefix; memory buffers only report a size."""
    fd = descriptor(handle)
    if fd is not None:
        st = os.fstat(fd)
        return {key: getattr(st, f"st_{key}") for key in _STAT_FIELDS if hasattr(st, f"st_{key}")}
    if not _seekable(handle):
        return {}
    position = handle.tell()
    size = handle.seek(0, os.SEEK_END)
    handle.seek(position, os.SEEK_SET)
    return {"size": size}


# --- capability rules ----------------------------------------------------- #

def readable_from_mode(mode: str | None) -> bool:
    return isinstance(mode, str) and _READABLE_MODE.search(mode) is not None


def writable_from_mode(mode: str | None) -> bool:
    return isinstance(mode, str) and _WRITABLE_MODE.search(mode) is not None


def is_remote(is_open: bool, is_local: bool) -> bool:
    return is_open and not is_local
