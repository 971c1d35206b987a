from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None
    path: str = ""


def read_json_file(path: str) -> ReadResult:
    """
    Read a JSON object from ``path`` without raising.

    ``error`` is one of ``missing``, ``not_object``, ``corrupt_json:<detail>`` or
    ``unreadable:<detail>``. A UTF-8 BOM is accepted.
    """
    path = str(path)
    if not os.path.isfile(path):
        return ReadResult(ok=False, data={}, error="missing", path=path)
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        return ReadResult(ok=False, data={}, error=f"unreadable:{e}", path=path)
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}", path=path)
    if not isinstance(obj, dict):
        return ReadResult(ok=False, data={}, error="not_object", path=path)
    return ReadResult(ok=True, data=obj, path=path)
