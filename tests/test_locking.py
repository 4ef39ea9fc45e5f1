"""Tests for advisory locking."""

import io
import os

import pytest

from streamwrap.core import locking
from streamwrap.core.locking import LOCKING_SUPPORTED, apply_lock, describe, lock_flags
from streamwrap.core.model import (
    LockError, LockMode, LockRequest, LockResult, NotLockableError, StreamError,
    StreamRuntimeError,
)
from streamwrap.io.local import Stream

pytestmark = pytest.mark.skipif(not LOCKING_SUPPORTED, reason="flock() not available")


@pytest.fixture
def rival(path):
    """Independent handle on the same file, holding its own lock."""
    handle = open(path, "r+b")
    yield handle
    handle.close()


class TestLockRequests:
    """Test request to flock flag mapping."""

    def test_flags(self):
        """Test each mode with and without the non-blocking bit."""
        fcntl = locking.fcntl
        assert lock_flags(LockRequest(LockMode.EXCLUSIVE)) == fcntl.LOCK_EX
        assert lock_flags(LockRequest(LockMode.SHARED, blocking=False)) == fcntl.LOCK_SH | fcntl.LOCK_NB
        assert lock_flags(LockRequest(LockMode.UNLOCK)) == fcntl.LOCK_UN

    def test_describe(self):
        """Test request descriptions used in messages."""
        assert describe(LockRequest(LockMode.SHARED)) == "shared"
        assert describe(LockRequest(LockMode.EXCLUSIVE, blocking=False)) == "exclusive, non-blocking"

    def test_failure_without_contention(self, path):
        """Test a failing lock call that is not contention."""
        fd = os.open(path, os.O_RDONLY)
        os.close(fd)

        with pytest.raises(LockError, match=r"Failed performing lock operation \(exclusive, non-blocking\).") as exc:
            apply_lock(fd, LockRequest(LockMode.EXCLUSIVE, blocking=False))
        assert exc.value.would_block is False
        assert isinstance(exc.value.__cause__, OSError)


class TestStreamLocking:
    """Test locking through Stream."""

    def test_lock_and_unlock(self, stream):
        """Test a successful lock cycle."""
        assert stream.lock_exclusive() == LockResult(acquired=True)
        assert stream.unlock() == LockResult(acquired=True)
        assert stream.lock_shared(non_blocking=True).acquired
        stream.unlock()
        stream.unlock()

    def test_contention(self, stream, rival):
        """Test a non-blocking request against a held lock reports would_block."""
        locking.fcntl.flock(rival, locking.fcntl.LOCK_EX | locking.fcntl.LOCK_NB)

        with pytest.raises(LockError) as exc:
            stream.lock_exclusive(non_blocking=True)
        assert exc.value.would_block is True
        assert isinstance(exc.value, StreamRuntimeError)

        with pytest.raises(LockError):
            stream.lock_shared(non_blocking=True)

    def test_shared_locks_coexist(self, stream, rival):
        """Test two shared locks on the same file."""
        locking.fcntl.flock(rival, locking.fcntl.LOCK_SH | locking.fcntl.LOCK_NB)
        assert stream.lock_shared(non_blocking=True).acquired

    def test_close_releases_lock(self, stream, rival):
        """Test closing the stream lets others lock the file."""
        stream.lock_exclusive()
        stream.close()

        locking.fcntl.flock(rival, locking.fcntl.LOCK_EX | locking.fcntl.LOCK_NB)

    def test_close_issues_unlock(self, stream, monkeypatch):
        """Test close sends a non-blocking unlock before closing the handle."""
        requests = []

        def recording(fd, request):
            requests.append((request, stream.get_handle() is not None))
            return apply_lock(fd, request)

        monkeypatch.setattr("streamwrap.io.local.apply_lock", recording)
        stream.lock_exclusive()
        stream.close()

        assert requests[-1] == (LockRequest(LockMode.UNLOCK, blocking=False), True)

    def test_unlock_flushes_pending_writes(self, stream, path):
        """Test data is on disk once the lock is released."""
        stream.lock_exclusive()
        stream.write(b"payload")
        stream.unlock()
        assert path.read_bytes() == b"payload"

    def test_close_ignores_unlock_failure(self, stream, monkeypatch):
        """Test a failed unlock does not keep the stream open."""
        def failing(fd, request):
            raise LockError("Failed performing lock operation (unlock).", LockResult(False))

        monkeypatch.setattr("streamwrap.io.local.apply_lock", failing)
        handle = stream.get_handle()
        stream.close()
        assert handle.closed

    def test_not_lockable(self):
        """Test memory buffers cannot be locked."""
        stream = Stream(io.BytesIO())
        with pytest.raises(NotLockableError, match=r"Stream is not lockable \(type: memory; mode: r\+b\)."):
            stream.lock_exclusive()

    def test_closed_not_lockable(self, stream):
        """Test a closed stream cannot be locked."""
        stream.close()
        with pytest.raises(NotLockableError, match="Closed stream is not lockable."):
            stream.lock_shared()
        with pytest.raises(StreamError):
            stream.unlock()
