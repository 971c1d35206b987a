from __future__ import annotations

"""
ModuleManager: the pipeline runner and the facade handed to every module.

initialize() runs discovery -> resolve -> activate -> translations -> notify once,
each stage finishing for all bundles before the next starts. Nothing raised by a
bundle escapes initialize(); the outcome is reported in a PipelineReport.
"""

import os
import threading
from dataclasses import dataclass
from typing import List, Optional

from modhost.core.context import ModHostContext
from modhost.core.events import EventArgs, PriorityEvent, TypedPriorityEvent
from modhost.core.i18n.bridge import TranslationBridge
from modhost.core.modules.activator import ModuleActivator
from modhost.core.modules.contract import Module
from modhost.core.modules.discovery import BundleDiscovery
from modhost.core.modules.manifest import Manifest
from modhost.core.modules.models import LoadedModule, PipelineReport
from modhost.core.modules.notifier import ActivationNotifier
from modhost.core.modules.resolver import DependencyResolver


@dataclass
class ModuleLoadedArgs(EventArgs):
    module_id: str
    manifest: Manifest


class ModuleManager:
    def __init__(self, context: Optional[ModHostContext] = None, *, modules_dir: Optional[str] = None):
        self.context = context or ModHostContext.create()
        self.config = self.context.config
        self.logger = self.context.logger.getChild("modules")
        self.modules_dir = str(modules_dir) if modules_dir is not None else os.path.abspath(self.config.modules_dir)

        self.modules: List[LoadedModule] = []
        self.module_loaded: TypedPriorityEvent[ModuleLoadedArgs] = TypedPriorityEvent(
            "modules.loaded", ModuleLoadedArgs, logger=self.logger.getChild("events")
        )
        self.modules_ready = PriorityEvent("modules.ready", logger=self.logger.getChild("events"))

        self._lock = threading.Lock()
        self._report: Optional[PipelineReport] = None

    # ---- facade ----
    def is_loaded(self, module_id: str) -> bool:
        return any(lm.module_id == module_id for lm in self.modules)

    def get(self, module_id: str) -> Module:
        for lm in self.modules:
            if lm.module_id == module_id:
                return lm.module
        raise KeyError(f"Module '{module_id}' is not loaded")

    def list_loaded(self) -> List[str]:
        return [lm.module_id for lm in self.modules]

    @property
    def report(self) -> Optional[PipelineReport]:
        return self._report

    # ---- pipeline ----
    def initialize(self) -> PipelineReport:
        with self._lock:
            if self._report is not None:
                return self._report
            self._report = self._run()
            return self._report

    def _run(self) -> PipelineReport:
        report = PipelineReport()
        self.logger.info("Initializing module manager...")

        self.logger.info("Loading modules...")
        found = BundleDiscovery(modules_dir=self.modules_dir, config=self.config, logger=self.logger.getChild("discovery")).scan()
        report.discovered = [r.module_id for r in found.records]
        report.skipped_files = list(found.skipped)

        resolution = DependencyResolver(logger=self.logger.getChild("resolver")).resolve(found.records)
        report.load_order = resolution.order
        report.removed.extend(resolution.removed)

        activator = ModuleActivator(
            facade=self,
            resources=self.context.resources,
            config=self.config,
            logger=self.logger.getChild("activator"),
            on_loaded=self._publish_loaded,
            namespace=self.context.bundles,
        )
        activated = activator.activate(resolution.ordered, loaded=self.modules)
        report.removed.extend(activated.failed)
        report.loaded = self.list_loaded()

        self.logger.info("Loading translations...")
        TranslationBridge(
            resources=self.context.resources,
            sink=self.context.localization,
            config=self.config,
            logger=self.logger.getChild("i18n"),
        ).load_all(self.modules)

        self.logger.info("Notifying modules loading completed...")
        report.notify_failures = ActivationNotifier(logger=self.logger.getChild("notifier")).notify(self.modules)

        self.modules_ready.publish(self)
        self.logger.info(
            "Module manager ready: %d loaded, %d removed, %d skipped",
            len(report.loaded),
            len(report.removed),
            len(report.skipped_files),
        )
        return report

    def _publish_loaded(self, lm: LoadedModule) -> None:
        self.module_loaded.publish(self, ModuleLoadedArgs(module_id=lm.module_id, manifest=lm.manifest))
