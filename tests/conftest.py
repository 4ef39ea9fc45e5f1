"""Shared fixtures and a handle-less stream used to exercise the generic code paths."""

import pytest

from streamwrap.core.capabilities import StreamMetadata
from streamwrap.core.model import NotLockableError, NotReadableError, NotWritableError, Whence
from streamwrap.core.stream_base import AbstractStream
from streamwrap.io.local import Stream


class BufferStream(AbstractStream):
    """Stream over a bytearray, not backed by any native handle."""

    def __init__(self, data: bytes = b"", mode: str = "r+b"):
        self.data = bytearray(data)
        self.position = 0
        self.closed = False
        self._mode = mode
        self._eof = False

    def is_open(self):
        return not self.closed

    def close(self):
        self.closed = True

    def detach(self):
        self.closed = True
        return None

    def metadata(self):
        if self.closed:
            return None
        return StreamMetadata(mode=self._mode, seekable=True, blocked=True, local=True,
                              lockable=False, uri=None, stream_type="buffer")

    def get_stat(self):
        return {} if self.closed else {"size": len(self.data)}

    def eof(self):
        return self.closed or self._eof

    def lock(self, mode, blocking=True):
        raise NotLockableError(self)

    def seek(self, offset, whence=Whence.SET):
        base = {Whence.SET: 0, Whence.CUR: self.position, Whence.END: len(self.data)}[Whence(whence)]
        self.position = base + offset
        self._eof = False

    def tell(self):
        return None if self.closed else self.position

    def read(self, length):
        if not self.is_readable():
            raise NotReadableError(self)
        chunk = bytes(self.data[self.position:self.position + length])
        if not chunk and length:
            self._eof = True
        self.position += len(chunk)
        return chunk

    def write(self, data):
        if not self.is_writable():
            raise NotWritableError(self)
        self.data[self.position:self.position + len(data)] = data
        self.position += len(data)
        return len(data)

    def get_contents(self):
        if not self.is_readable():
            raise NotReadableError(self)
        data = bytes(self.data[self.position:])
        self.position = len(self.data)
        self._eof = True
        return data

    def read_line(self, length=0):
        raise NotImplementedError

    def truncate(self, length):
        raise NotImplementedError

    def set_blocking(self, blocking):
        raise NotImplementedError

    def read_csv(self, length=0, delimiter=",", quote='"', escape="\\", encoding="utf-8"):
        raise NotImplementedError

    def write_csv(self, fields, delimiter=",", quote='"', escape="\\", eol="\n", encoding="utf-8"):
        raise NotImplementedError

    def copy_to_stream(self, target, max_length=None, chunk_size=1024):
        raise NotImplementedError


@pytest.fixture
def buffer_stream():
    """Factory for BufferStream instances."""
    return BufferStream


@pytest.fixture
def path(tmp_path):
    """Path of an empty scratch file."""
    p = tmp_path / "data.bin"
    p.write_bytes(b"")
    return p


@pytest.fixture
def stream(path):
    """Read/write Stream over the scratch file."""
    s = Stream(open(path, "r+b"))
    yield s
    s.close()
