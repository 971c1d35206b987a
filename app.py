from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from modhost.core.config import load_config
from modhost.core.config.paths import ConfigFsPaths
from modhost.core.context import ModHostContext
from modhost.core.errors import ConfigError
from modhost.core.logger import setup_logging
from modhost.core.modules import ModuleManager
from modhost.core.modules.cli import report_json, report_lines


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Discover, order and activate module bundles")
    ap.add_argument("--config", default=ConfigFsPaths(".").loader, help="Path to modhost.json.")
    ap.add_argument("--modules-dir", default=None, help="Override the bundle directory from config.")
    ap.add_argument("--json", action="store_true", help="Print the pipeline report as JSON.")
    args = ap.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 2

    logger = setup_logging(cfg.log_dir, cfg.log_level)
    context = ModHostContext.create(cfg, logger=logger)
    manager = ModuleManager(context, modules_dir=args.modules_dir)
    report = manager.initialize()

    if args.json:
        print(report_json(report))
    else:
        for line in report_lines(report):
            print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
