from __future__ import annotations
import os
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Any, Dict, List, Sequence

from .capabilities import StreamMetadata, readable_from_mode, writable_from_mode, is_remote
from .model import LockMode, LockRequest, LockResult, Whence


class AbstractStream(ABC):
    """Stream contract plus every method derivable from its primitives.

    Subclasses supply the lifecycle, the metadata probe and the raw I/O
    operations; capability answers, lock-flag composition, seek shortcuts and
    stringification are built here on top of them.
    """

    # --- lifecycle ---
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def detach(self): ...

    # --- metadata ---
    @abstractmethod
    def metadata(self) -> StreamMetadata | None:
        """Typed metadata of the live handle, None when the stream is not open."""
        ...

    @abstractmethod
    def get_stat(self) -> Dict[str, Any]: ...

    # --- raw I/O ---
    @abstractmethod
    def eof(self) -> bool: ...

    @abstractmethod
    def lock(self, mode: LockMode, blocking: bool = True) -> LockResult: ...

    @abstractmethod
    def seek(self, offset: int, whence: int = Whence.SET) -> None: ...

    @abstractmethod
    def tell(self) -> int | None: ...

    @abstractmethod
    def read(self, length: int) -> bytes: ...

    @abstractmethod
    def read_line(self, length: int = 0) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def truncate(self, length: int) -> None: ...

    @abstractmethod
    def set_blocking(self, blocking: bool) -> None: ...

    @abstractmethod
    def read_csv(self, length: int = 0, delimiter: str = ",", quote: str = '"',
                 escape: str = "\\", encoding: str = "utf-8") -> List[str]: ...

    @abstractmethod
    def write_csv(self, fields: Sequence[Any], delimiter: str = ",", quote: str = '"',
                  escape: str = "\\", eol: str = "\n", encoding: str = "utf-8") -> int: ...

    @abstractmethod
    def get_contents(self) -> bytes: ...

    @abstractmethod
    def copy_to_stream(self, target: "AbstractStream", max_length: int | None = None,
                       chunk_size: int = 1024) -> int: ...

    # ------------------------------------------------------------------ #
    def get_metadata(self) -> Dict[str, Any]:
        meta = self.metadata()
        return {} if meta is None else asdict(meta)

    def get_metadata_key(self, key: str):
        return self.get_metadata().get(key)

    def get_stat_key(self, key: str):
        return self.get_stat().get(key)

    def get_mode(self) -> str | None:
        meta = self.metadata()
        return None if meta is None else meta.mode

    def get_uri(self) -> str | None:
        meta = self.metadata()
        return None if meta is None else meta.uri

    def get_type(self) -> str | None:
        meta = self.metadata()
        return None if meta is None else meta.stream_type

    def get_size(self) -> int | None:
        return self.get_stat_key("size")

    # --- capabilities ---
    def is_readable(self) -> bool:
        return readable_from_mode(self.get_mode())

    def is_writable(self) -> bool:
        return writable_from_mode(self.get_mode())

    def is_seekable(self) -> bool:
        meta = self.metadata()
        return meta is not None and meta.seekable

    def is_lockable(self) -> bool:
        meta = self.metadata()
        return meta is not None and meta.lockable

    def is_blocking(self) -> bool:
        meta = self.metadata()
        return meta is not None and meta.blocked

    def is_local(self) -> bool:
        meta = self.metadata()
        return meta is not None and meta.local

    def is_remote(self) -> bool:
        return is_remote(self.is_open(), self.is_local())

    # --- locking shortcuts ---
    def _request(self, request: LockRequest) -> LockResult:
        return self.lock(request.mode, request.blocking)

    def lock_exclusive(self, non_blocking: bool = False) -> LockResult:
        return self._request(LockRequest(LockMode.EXCLUSIVE, not non_blocking))

    def lock_shared(self, non_blocking: bool = False) -> LockResult:
        return self._request(LockRequest(LockMode.SHARED, not non_blocking))

    def unlock(self, non_blocking: bool = False) -> LockResult:
        return self._request(LockRequest(LockMode.UNLOCK, not non_blocking))

    # --- seeking shortcuts ---
    def rewind(self) -> None:
        self.seek(0, Whence.SET)

    def fast_forward(self) -> None:
        self.seek(0, Whence.END)

    def write_line(self, data: bytes, newline: bytes = os.linesep.encode()) -> int:
        return self.write(data + newline)

    # --- stringification, never raises ---
    def __bytes__(self) -> bytes:
        try:
            position = self.tell()
            self.seek(0, Whence.SET)
            data = self.get_contents()
            self.seek(position, Whence.SET)
        except Exception:
            return b""
        return data

    def __str__(self) -> str:
        return bytes(self).decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        if not self.is_open():
            return f"<{type(self).__name__} closed>"
        return f"<{type(self).__name__} uri={self.get_uri()!r} type={self.get_type()} mode={self.get_mode()!r}>"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
