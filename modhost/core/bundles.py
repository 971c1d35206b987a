from __future__ import annotations

"""
Per-context import namespace for activated bundle payloads.

Every ModHostContext owns one BundleNamespace. Its package name carries a random
token (``modhost_bundles_<hex>``), so two hosts in one process never see each
other's bundles. A payload reaches earlier bundles of its own host through a
relative import:

    from .core import CoreModule
"""

import importlib.abc
import importlib.util
import linecache
import sys
import threading
import types
import uuid
from typing import Dict, List, Optional

PACKAGE_PREFIX = "modhost_bundles"


class PayloadLoader(importlib.abc.InspectLoader):
    """Loader for one payload already read out of its archive (source kept in memory)."""

    def __init__(self, fullname: str, path: str, source: str):
        self.fullname = fullname
        self.path = path
        self.source = source

    def get_source(self, fullname: str) -> str:
        if fullname != self.fullname:
            raise ImportError(f"loader for {self.fullname} cannot provide {fullname}", name=fullname)
        return self.source

    def get_code(self, fullname: str) -> types.CodeType:
        return self.source_to_code(self.get_source(fullname), self.path)

    def is_package(self, fullname: str) -> bool:
        return False

    def get_filename(self, fullname: str) -> str:
        return self.path


class _StaticSource:
    def __init__(self, source: str):
        self.source = source

    def get_source(self, _name: str) -> str:
        return self.source


def register_source(filename: str, source: str) -> bool:
    """Make ``source`` available to linecache/tracebacks under ``filename`` (no file on disk)."""
    return linecache.lazycache(filename, {"__name__": filename, "__loader__": _StaticSource(source)})


class BundleNamespace:
    def __init__(self, name: Optional[str] = None):
        self.name = name or f"{PACKAGE_PREFIX}_{uuid.uuid4().hex[:12]}"
        self._lock = threading.Lock()
        self._modules: Dict[str, types.ModuleType] = {}
        self._package: Optional[types.ModuleType] = None

    def package(self) -> types.ModuleType:
        with self._lock:
            if self._package is None:
                pkg = types.ModuleType(self.name)
                pkg.__path__ = []  # type: ignore[attr-defined]
                pkg.__package__ = self.name
                self._package = pkg
            sys.modules.setdefault(self.name, self._package)
            return self._package

    def qualified(self, module_id: str) -> str:
        return f"{self.name}.{module_id}"

    def load(self, module_id: str, path: str, source: str) -> types.ModuleType:
        """
        Execute ``source`` as ``<namespace>.<module_id>``.

        The module is visible in sys.modules while it executes (so it can import
        itself and earlier bundles); on failure every trace of it is removed.
        """
        pkg = self.package()
        name = self.qualified(module_id)
        loader = PayloadLoader(name, path, source)
        spec = importlib.util.spec_from_loader(name, loader, origin=path)
        spec.has_location = True
        mod = importlib.util.module_from_spec(spec)
        sys.modules[name] = mod
        try:
            loader.exec_module(mod)
        except BaseException:
            sys.modules.pop(name, None)
            raise
        with self._lock:
            self._modules[module_id] = mod
        setattr(pkg, module_id, mod)
        return mod

    def discard(self, module_id: str) -> bool:
        name = self.qualified(module_id)
        with self._lock:
            mod = self._modules.pop(module_id, None)
        sys.modules.pop(name, None)
        pkg = self._package
        if pkg is not None and module_id in vars(pkg):
            delattr(pkg, module_id)
        return mod is not None

    def get(self, module_id: str) -> Optional[types.ModuleType]:
        with self._lock:
            return self._modules.get(module_id)

    def module_ids(self) -> List[str]:
        with self._lock:
            return list(self._modules)

    def __contains__(self, module_id: object) -> bool:
        with self._lock:
            return module_id in self._modules
