from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Iterable, Optional, Protocol

from pydantic import ValidationError

from modhost.core.config.models import LoaderConfig
from modhost.core.errors import TranslationError
from modhost.core.i18n.manager import TranslationData
from modhost.core.logger import get_logger
from modhost.core.resources import ResourcePacks

if TYPE_CHECKING:
    from modhost.core.modules.models import LoadedModule

LOCALE_CODE = re.compile(r"[A-Za-z]{2}(_[A-Za-z]{2})?")


class TranslationSink(Protocol):
    def register_string_translation(self, lang: str, key: str, value: str) -> None:
        ...

    def register_asset_translation(self, lang: str, key: str, value: str) -> None:
        ...


def locale_for_file(name: str, suffix: str = ".json") -> Optional[str]:
    """Return the locale code for ``en.json`` / ``pt_BR.json`` style names, else None."""
    if not name.endswith(suffix):
        return None
    stem = name[: -len(suffix)]
    return stem if LOCALE_CODE.fullmatch(stem) else None


class TranslationBridge:
    def __init__(
        self,
        *,
        resources: ResourcePacks,
        sink: TranslationSink,
        config: Optional[LoaderConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.resources = resources
        self.sink = sink
        self.config = config or LoaderConfig()
        self.logger = logger or get_logger("i18n")

    def load_all(self, modules: Iterable[LoadedModule]) -> int:
        """Forward every locale file of every module; returns the number of files applied."""
        applied = 0
        for lm in modules:
            self.logger.debug("Loading translations for module %s", lm.module_id)
            applied += self.load_module(lm.module_id)
        return applied

    def load_module(self, module_id: str) -> int:
        base = self.config.i18n_dir_for(module_id)
        try:
            names = self.resources.list_dir(base)
        except Exception as e:  # noqa: BLE001
            self.logger.warning("Could not list translations for %s: %s", module_id, e)
            return 0
        applied = 0
        for name in names:
            lang = locale_for_file(name, self.config.translation_suffix)
            if lang is None:
                continue
            path = f"{base}/{name}"
            try:
                self._apply(lang, path)
                applied += 1
            except Exception as e:  # noqa: BLE001
                self.logger.warning("Failed to load translations %s for module %s: %s", path, module_id, e)
        return applied

    def _apply(self, lang: str, path: str) -> None:
        try:
            data = TranslationData.model_validate(json.loads(self.resources.read_text(path, encoding="utf-8-sig")))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise TranslationError("Locale file is invalid.", path=path, error=str(e)[:200]) from e
        for key, value in data.strings.items():
            self.sink.register_string_translation(lang, key, value)
        for key, value in data.assets.items():
            self.sink.register_asset_translation(lang, key, value)
