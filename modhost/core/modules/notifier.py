from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from modhost.core.logger import get_logger
from modhost.core.modules.models import LoadedModule


class ActivationNotifier:
    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("notifier")

    def notify(self, modules: Iterable[LoadedModule]) -> List[str]:
        """Call after_all_loaded() on each module in load order; returns ids whose callback raised."""
        failed: List[str] = []
        for lm in modules:
            try:
                self.logger.debug("Notifying module %s", lm.module_id)
                lm.module.after_all_loaded()
            except (Exception, SystemExit) as e:  # noqa: BLE001
                self.logger.error("Exception while notifying module %s: %r", lm.module_id, e, exc_info=True)
                failed.append(lm.module_id)
        return failed
