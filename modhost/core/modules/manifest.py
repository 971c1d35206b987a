from __future__ import annotations

"""
Bundle manifest schema + parsing.

Manifests are read during discovery, before any bundle code runs, so parsing only
ever touches the metadata bytes.
"""

import json
from typing import Any, Dict, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from modhost.core.errors import ManifestError


class Manifest(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    author: str = ""
    version: str = ""
    dependencies: Tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _lower_keys(cls, v: Any) -> Any:
        # Bundles built by older tooling use PascalCase keys ("Id", "Dependencies").
        if isinstance(v, dict):
            return {str(k).lower(): val for k, val in v.items()}
        return v

    @field_validator("id")
    @classmethod
    def _id_not_empty(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v:
            raise ValueError("id cannot be empty")
        return v

    @field_validator("name", "description", "author", "version", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _norm_deps(cls, v: Any) -> Tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError("dependencies must be a list of ids")
        return tuple(str(x).strip() for x in v if str(x or "").strip())


def parse_manifest(raw: Union[bytes, str, Dict[str, Any]], *, source: str = "") -> Manifest:
    """Parse manifest bytes/text/dict into a Manifest, raising ManifestError on any problem."""
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8-sig")
        data = json.loads(raw) if isinstance(raw, str) else raw
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError("Manifest is not valid JSON.", source=source, error=str(e)[:200]) from e
    if not isinstance(data, dict):
        raise ManifestError("Manifest is not an object.", source=source)
    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError("Manifest failed validation.", source=source, error=str(e)[:500]) from e
