from __future__ import annotations

"""
Bundle activation: run each ordered bundle's payload and instantiate its module.

Per bundle, in resolver order:
- read ``<id>.py`` (and the optional ``<id>.debug.json``) from the archive
- execute the payload through importlib as ``<host namespace>.<id>``
- call the single ``@module_entry`` factory, attach manifest + facade
- release the archive (success or failure), then mount the bundle file as a
  resource pack

A failure drops that one bundle and activation continues with the next.
"""

import json
import logging
import os
import types
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from modhost.core.bundles import BundleNamespace, register_source
from modhost.core.config.models import LoaderConfig
from modhost.core.errors import ActivationError, EntryPointError
from modhost.core.logger import get_logger
from modhost.core.modules.contract import Module, ModuleManagerFacade, is_module_entry
from modhost.core.modules.models import BundleRecord, LoadedModule, ModuleReasonCode, RemovedBundle
from modhost.core.resources import ResourcePacks

DEBUG_SUFFIX = ".debug.json"


@dataclass
class ActivationResult:
    loaded: List[LoadedModule] = field(default_factory=list)
    failed: List[RemovedBundle] = field(default_factory=list)


class ModuleActivator:
    def __init__(
        self,
        *,
        facade: ModuleManagerFacade,
        resources: Optional[ResourcePacks] = None,
        config: Optional[LoaderConfig] = None,
        logger: Optional[logging.Logger] = None,
        on_loaded: Optional[Callable[[LoadedModule], None]] = None,
        namespace: Optional[BundleNamespace] = None,
    ):
        self.facade = facade
        self.resources = resources
        self.config = config or LoaderConfig()
        self.logger = logger or get_logger("activator")
        self.on_loaded = on_loaded
        self.namespace = namespace or BundleNamespace()

    def activate(self, ordered: List[BundleRecord], loaded: Optional[List[LoadedModule]] = None) -> ActivationResult:
        """
        Activate ``ordered`` in sequence.

        ``loaded`` is the live list the facade answers ``is_loaded`` from; each module
        is appended to it as soon as it is instantiated.
        """
        result = ActivationResult(loaded=loaded if loaded is not None else [])
        for rec in ordered:
            lm: Optional[LoadedModule] = None
            try:
                self.logger.debug("Loading module %s from %s", rec.module_id, rec.path)
                lm = self._load(rec)
                result.loaded.append(lm)
            except Exception as e:  # noqa: BLE001
                self.logger.error("Exception loading module %s: %s", rec.module_id, e, exc_info=True)
                result.failed.append(
                    RemovedBundle(
                        module_id=rec.module_id,
                        reason_code=ModuleReasonCode.ACTIVATION_FAILED,
                        detail=str(e)[:500],
                        path=rec.path,
                    )
                )
            finally:
                rec.release()

            if lm is None:
                continue
            self._attach_resources(rec)
            self._announce(lm)
        return result

    # ---- internals ----
    def _load(self, rec: BundleRecord) -> LoadedModule:
        # SystemExit from bundle code is a per-bundle failure
        try:
            return self._instantiate(rec)
        except SystemExit as e:
            raise ActivationError(f"Bundle code called exit({e.code!r}).", module_id=rec.module_id) from e

    def _instantiate(self, rec: BundleRecord) -> LoadedModule:
        if rec.archive is None or rec.archive.released:
            raise ActivationError("Bundle archive is not open.", module_id=rec.module_id)
        mid = rec.module_id
        payload_name = f"{mid}{self.config.payload_suffix}"
        source = rec.archive.read_optional(payload_name)
        if source is None:
            raise ActivationError(f"Bundle has no payload entry {payload_name}.", module_id=mid)
        debug = rec.archive.read_optional(f"{mid}{DEBUG_SUFFIX}")

        mod = self._exec_payload(rec, payload_name, source, debug)
        try:
            factory = self._find_entry(mod, mid)
            instance = factory()
            if not isinstance(instance, Module):
                raise EntryPointError(
                    f"Entry point returned {type(instance).__name__}, not a Module.",
                    module_id=mid,
                )
        except BaseException:
            # rejected bundles are not importable by later ones
            self.namespace.discard(mid)
            raise
        instance.manifest = rec.manifest
        instance.module_manager = self.facade
        return LoadedModule(module=instance, manifest=rec.manifest, manager=self.facade)

    def _exec_payload(self, rec: BundleRecord, payload_name: str, source: bytes, debug: Optional[bytes]) -> types.ModuleType:
        mid = rec.module_id
        try:
            text = source.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ActivationError("Payload is not UTF-8 text.", module_id=mid) from e

        if debug is not None:
            self._register_debug_sources(rec, debug)
        return self.namespace.load(mid, os.path.join(rec.path, payload_name), text)

    def _register_debug_sources(self, rec: BundleRecord, debug: bytes) -> None:
        try:
            files = json.loads(debug.decode("utf-8-sig"))
            if not isinstance(files, dict):
                raise ValueError("debug entry must map file names to source")
            for fname, text in files.items():
                register_source(os.path.join(rec.path, str(fname)), str(text))
        except (ValueError, UnicodeDecodeError) as e:
            self.logger.warning("Ignoring malformed debug entry for %s: %s", rec.module_id, e)

    def _find_entry(self, mod: types.ModuleType, module_id: str) -> Callable[[], Any]:
        entries: Dict[str, Callable[[], Any]] = {
            k: v for k, v in vars(mod).items() if is_module_entry(v) and getattr(v, "__module__", None) == mod.__name__
        }
        if len(entries) != 1:
            raise EntryPointError(
                f"Bundle must declare exactly one @module_entry, found {len(entries)}.",
                module_id=module_id,
                entries=sorted(entries),
            )
        return next(iter(entries.values()))

    def _attach_resources(self, rec: BundleRecord) -> None:
        if self.resources is None:
            return
        try:
            ok = self.resources.load_resource_pack(rec.path)
        except Exception as e:  # noqa: BLE001
            self.logger.error("Failed to load resource pack for module %s: %s", rec.module_id, e)
            return
        if not ok:
            self.logger.error("Failed to load resource pack for module %s!", rec.module_id)

    def _announce(self, lm: LoadedModule) -> None:
        if self.on_loaded is None:
            return
        try:
            self.on_loaded(lm)
        except Exception as e:  # noqa: BLE001
            self.logger.error("Exception in loaded callback for module %s: %s", lm.module_id, e, exc_info=True)
