from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoaderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    modules_dir: str = "modules"
    create_modules_dir: bool = True
    bundle_suffix: str = ".zip"
    manifest_entry: str = "manifest.json"
    payload_suffix: str = ".py"
    i18n_dir: str = "module/{module_id}/i18n"
    translation_suffix: str = ".json"
    default_language: str = Field(default="en", min_length=2, max_length=5)
    log_dir: str = "logs"
    log_level: str = "INFO"

    @field_validator("bundle_suffix", "payload_suffix", "translation_suffix")
    @classmethod
    def _dotted_suffix(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v.startswith(".") or len(v) < 2:
            raise ValueError("suffix must start with '.'")
        return v

    @field_validator("i18n_dir")
    @classmethod
    def _i18n_template(cls, v: str) -> str:
        v = str(v or "").strip().strip("/")
        if "{module_id}" not in v:
            raise ValueError("i18n_dir must contain '{module_id}'")
        return v

    @field_validator("log_level")
    @classmethod
    def _level(cls, v: str) -> str:
        v = str(v or "").strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("unknown log level")
        return v

    def i18n_dir_for(self, module_id: str) -> str:
        return self.i18n_dir.format(module_id=module_id)
