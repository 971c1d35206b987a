from __future__ import annotations

"""
Resource-pack layer.

Activated bundles are mounted here so their bundled files (locale data, assets)
can be resolved by path after the bundle's own archive handle has been released.
Reads open the pack for the duration of the call only.
"""

import logging
import os
import posixpath
import threading
import zipfile
from typing import List, Optional

from modhost.core.logger import get_logger


class ResourcePacks:
    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("resources")
        self._lock = threading.Lock()
        self._packs: List[str] = []

    def load_resource_pack(self, path: str) -> bool:
        path = os.path.abspath(str(path))
        if not zipfile.is_zipfile(path):
            return False
        with self._lock:
            if path not in self._packs:
                self._packs.append(path)
        self.logger.debug("Mounted resource pack %s", path)
        return True

    def packs(self) -> List[str]:
        with self._lock:
            return list(self._packs)

    def list_dir(self, dir_path: str) -> List[str]:
        """File names directly inside ``dir_path`` across all mounted packs (sorted, de-duplicated)."""
        prefix = _norm(dir_path)
        prefix = prefix + "/" if prefix else ""
        names = set()
        for pack in self.packs():
            with zipfile.ZipFile(pack, "r") as zf:
                for entry in zf.namelist():
                    if not entry.startswith(prefix) or entry.endswith("/"):
                        continue
                    rest = entry[len(prefix):]
                    if rest and "/" not in rest:
                        names.add(rest)
        return sorted(names)

    def read_bytes(self, path: str) -> bytes:
        name = _norm(path)
        for pack in self.packs():
            with zipfile.ZipFile(pack, "r") as zf:
                try:
                    return zf.read(name)
                except KeyError:
                    continue
        raise FileNotFoundError(name)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def exists(self, path: str) -> bool:
        try:
            self.read_bytes(path)
        except FileNotFoundError:
            return False
        return True


def _norm(path: str) -> str:
    p = str(path or "").replace("\\", "/")
    if p.startswith("res://"):
        p = p[len("res://"):]
    p = posixpath.normpath(p) if p else ""
    return "" if p in {".", "/"} else p.strip("/")
