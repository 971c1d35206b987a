from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from modhost.core.bundles import BundleNamespace
from modhost.core.config.models import LoaderConfig
from modhost.core.i18n.manager import LocalizationManager
from modhost.core.logger import get_logger
from modhost.core.registry import RegistryIndex
from modhost.core.resources import ResourcePacks


@dataclass
class ModHostContext:
    """
    Process-scoped state for one pipeline run.

    Created at startup and passed to every component that needs shared state, so
    several independent hosts can live in one process (tests do this).
    """

    config: LoaderConfig = field(default_factory=LoaderConfig)
    logger: logging.Logger = field(default_factory=lambda: get_logger("host"))
    localization: Optional[LocalizationManager] = None
    resources: Optional[ResourcePacks] = None
    registries: Optional[RegistryIndex] = None
    bundles: Optional[BundleNamespace] = None

    def __post_init__(self) -> None:
        if self.localization is None:
            self.localization = LocalizationManager(default_language=self.config.default_language, logger=self.logger.getChild("i18n"))
        if self.resources is None:
            self.resources = ResourcePacks(logger=self.logger.getChild("resources"))
        if self.registries is None:
            self.registries = RegistryIndex(logger=self.logger.getChild("registry"))
        if self.bundles is None:
            self.bundles = BundleNamespace()

    @classmethod
    def create(cls, config: Optional[LoaderConfig] = None, logger: Optional[logging.Logger] = None) -> "ModHostContext":
        return cls(config=config or LoaderConfig(), logger=logger or get_logger("host"))
