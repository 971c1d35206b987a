from __future__ import annotations

"""
Contextual ids + registries.

A ContextualId is ``context:id`` where context is the owning bundle id (or the
host's own id). Registries hang off a RegistryIndex owned by a ModHostContext, and
an id may be registered at most once across every registry of that index.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from modhost.core.errors import RegistryError
from modhost.core.logger import get_logger

T = TypeVar("T")


@dataclass(frozen=True)
class ContextualId:
    context: str
    id: str

    @classmethod
    def parse(cls, value: str) -> "ContextualId":
        value = str(value)
        if ":" not in value:
            raise ValueError("contextual id must be in context:id format")
        context, _, ident = value.partition(":")
        return cls(context=context, id=ident)

    def node_path_safe(self) -> str:
        return str(self).replace(":", "$").replace(".", "_")

    def __str__(self) -> str:
        return f"{self.context}:{self.id}"


class RegistryIndex:
    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("registry")
        self._lock = threading.RLock()
        self._registries: Dict[str, "Registry[Any]"] = {}
        self._data: Dict[ContextualId, Any] = {}

    def create(self, name: str) -> "Registry[Any]":
        return Registry(name, self)

    def _add_registry(self, registry: "Registry[Any]") -> None:
        with self._lock:
            if registry.name in self._registries:
                raise RegistryError("Registry name already in use.", registry=registry.name)
            self._registries[registry.name] = registry

    def _add_data(self, cid: ContextualId, obj: Any) -> None:
        with self._lock:
            if cid in self._data:
                raise RegistryError(f"An object already exists somewhere for the ID '{cid}'.", id=str(cid))
            self._data[cid] = obj

    def has_data(self, cid: ContextualId) -> bool:
        with self._lock:
            return cid in self._data

    def get_registry(self, name: str) -> "Registry[Any]":
        with self._lock:
            return self._registries[name]

    def names(self) -> List[str]:
        with self._lock:
            return list(self._registries.keys())


class Registry(Generic[T]):
    def __init__(self, name: str, index: RegistryIndex):
        self.name = str(name)
        self.index = index
        self._objects: Dict[ContextualId, T] = {}
        index._add_registry(self)

    def add(self, cid: ContextualId, obj: T) -> None:
        with self.index._lock:
            if cid in self._objects or self.index.has_data(cid):
                raise RegistryError(f"An object already exists somewhere for the ID '{cid}'.", id=str(cid), registry=self.name)
            self.index.logger.debug("Adding %s=%r to registry %s", cid, obj, self.name)
            self.index._add_data(cid, obj)
            self._objects[cid] = obj

    def get(self, cid: ContextualId) -> T:
        return self._objects[cid]

    def has(self, cid: ContextualId) -> bool:
        return cid in self._objects

    def all_ids(self) -> List[ContextualId]:
        return list(self._objects.keys())

    def __len__(self) -> int:
        return len(self._objects)
