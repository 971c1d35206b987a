from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from modhost.core.config.io import ReadResult, read_json_file
from modhost.core.config.models import LoaderConfig
from modhost.core.config.paths import ConfigFsPaths
from modhost.core.errors import ConfigError


def load_config(path: Optional[str] = None) -> LoaderConfig:
    """
    Load the loader configuration.

    A missing file yields the defaults; a corrupt or invalid file raises ConfigError.
    """
    if path is None:
        path = ConfigFsPaths(".").loader
    res = read_json_file(path)
    if not res.ok:
        if res.error == "missing":
            return LoaderConfig()
        raise ConfigError("Loader configuration could not be read.", path=path, error=res.error)
    try:
        return LoaderConfig.model_validate(res.data)
    except ValidationError as e:
        raise ConfigError("Loader configuration is invalid.", path=path, error=str(e)[:500]) from e


__all__ = ["ConfigFsPaths", "LoaderConfig", "ReadResult", "load_config", "read_json_file"]
