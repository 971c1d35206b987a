from __future__ import annotations

import threading
import zipfile
from typing import List, Optional

from modhost.core.errors import ArchiveClosedError, DiscoveryError


class BundleArchive:
    """
    Open handle on a bundle archive.

    The handle is released at most once: ``release()`` is idempotent and reports
    whether this call performed the close. Any read after release raises
    ArchiveClosedError.
    """

    def __init__(self, path: str):
        self.path = str(path)
        self._lock = threading.Lock()
        self._released = False
        try:
            self._zip: Optional[zipfile.ZipFile] = zipfile.ZipFile(self.path, "r")
        except (OSError, zipfile.BadZipFile) as e:
            raise DiscoveryError("Bundle archive could not be opened.", path=self.path, error=str(e)[:200]) from e

    @property
    def released(self) -> bool:
        return self._released

    def _require_open(self) -> zipfile.ZipFile:
        if self._released or self._zip is None:
            raise ArchiveClosedError(path=self.path)
        return self._zip

    def names(self) -> List[str]:
        return list(self._require_open().namelist())

    def has(self, name: str) -> bool:
        zf = self._require_open()
        try:
            zf.getinfo(name)
        except KeyError:
            return False
        return True

    def read(self, name: str) -> bytes:
        zf = self._require_open()
        with self._lock:
            return zf.read(name)

    def read_optional(self, name: str) -> Optional[bytes]:
        if not self.has(name):
            return None
        return self.read(name)

    def release(self) -> bool:
        with self._lock:
            if self._released:
                return False
            self._released = True
            zf, self._zip = self._zip, None
        if zf is not None:
            zf.close()
        return True

    def __enter__(self) -> "BundleArchive":
        return self

    def __exit__(self, *_exc) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "open"
        return f"BundleArchive({self.path!r}, {state})"
