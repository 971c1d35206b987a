from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modhost.core.errors import TranslationError
from modhost.core.logger import get_logger


class TranslationData(BaseModel):
    """Contents of one ``<locale>.json`` file."""

    model_config = ConfigDict(extra="forbid")

    strings: Dict[str, str] = Field(default_factory=dict)
    assets: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lower_keys(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k).lower(): val for k, val in v.items()}
        return v

    @field_validator("strings", "assets", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class LocalizationManager:
    """
    String tables + asset remaps per language, owned by one ModHostContext.

    Lookup without an explicit language falls back: current language, then the
    default language, then the key itself.
    """

    def __init__(self, *, default_language: str = "en", logger: Optional[logging.Logger] = None):
        self.default_language = str(default_language)
        self.current_language = self.default_language
        self.logger = logger or get_logger("i18n")
        self._lock = threading.Lock()
        self._strings: Dict[str, Dict[str, str]] = {self.default_language: {}}
        self._asset_remaps: Dict[str, List[str]] = {}

    def languages(self) -> List[str]:
        with self._lock:
            return list(self._strings.keys())

    def register_translations(self, lang: str, data: TranslationData) -> int:
        n = 0
        for key, value in data.strings.items():
            self.register_string_translation(lang, key, value)
            n += 1
        for key, value in data.assets.items():
            self.register_asset_translation(lang, key, value)
            n += 1
        return n

    def register_string_translation(self, lang: str, key: str, value: str) -> None:
        with self._lock:
            table = self._strings.setdefault(str(lang), {})
            if key in table:
                raise TranslationError("Translation key already registered.", lang=lang, key=key)
            table[str(key)] = str(value)

    def register_asset_translation(self, lang: str, key: str, value: str) -> None:
        with self._lock:
            self._asset_remaps.setdefault(str(key), []).append(f"{value}:{lang}")

    def asset_remaps(self, key: str) -> List[str]:
        with self._lock:
            return list(self._asset_remaps.get(str(key), []))

    def get_string_translation(self, key: str, lang: Optional[str] = None) -> Optional[str]:
        with self._lock:
            if lang is not None:
                return self._strings.get(str(lang), {}).get(key)
            for code in (self.current_language, self.default_language):
                table = self._strings.get(code, {})
                if key in table:
                    return table[key]
        return key
