from __future__ import annotations

import json
import sys

from modhost.core.config import ConfigFsPaths, load_config
from modhost.core.errors import ConfigError


def main() -> int:
    path = sys.argv[1] if len(sys.argv) > 1 else ConfigFsPaths(".").loader
    try:
        cfg = load_config(path)
    except ConfigError as e:
        print(json.dumps(e.to_dict(), indent=2, sort_keys=True), file=sys.stderr)
        return 2
    print(json.dumps({"path": path, "config": cfg.model_dump()}, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
