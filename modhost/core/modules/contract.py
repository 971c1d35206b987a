from __future__ import annotations

"""
Contract between the loader and bundle code.

A bundle payload subclasses ``Module`` and marks exactly one factory (usually the
class itself) with ``@module_entry``:

    from modhost.core.modules.contract import Module, module_entry

    @module_entry
    class CoreModule(Module):
        def after_all_loaded(self) -> None:
            ...
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol, TypeVar, runtime_checkable

from modhost.core.modules.manifest import Manifest

ENTRY_MARKER = "__module_entry__"

F = TypeVar("F", bound=Callable[..., Any])


@runtime_checkable
class ModuleManagerFacade(Protocol):
    def is_loaded(self, module_id: str) -> bool:
        ...


class Module(ABC):
    # Set by the activator before the module is added to the loaded list.
    manifest: Optional[Manifest] = None
    module_manager: Optional[ModuleManagerFacade] = None

    @abstractmethod
    def after_all_loaded(self) -> None:
        """Called exactly once, after every bundle has been activated."""

    @property
    def module_id(self) -> str:
        return self.manifest.id if self.manifest is not None else ""


def module_entry(factory: F) -> F:
    """Mark the zero-argument callable that produces this bundle's Module."""
    if not callable(factory):
        raise TypeError("module_entry expects a class or function")
    setattr(factory, ENTRY_MARKER, True)
    return factory


def is_module_entry(obj: Any) -> bool:
    # own attribute only: a subclass of a marked class is not itself an entry point
    return callable(obj) and getattr(obj, "__dict__", {}).get(ENTRY_MARKER) is True
