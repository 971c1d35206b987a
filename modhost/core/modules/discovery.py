from __future__ import annotations

"""
Bundle discovery (no code execution).

Discovery opens each bundle archive and reads only its manifest entry. The
archive handle stays open on the returned record until the resolver drops the
record or the activator finishes with it.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from modhost.core.config.models import LoaderConfig
from modhost.core.errors import DiscoveryError, ManifestError, ModHostError
from modhost.core.logger import get_logger
from modhost.core.modules.archive import BundleArchive
from modhost.core.modules.manifest import parse_manifest
from modhost.core.modules.models import BundleRecord, SkippedFile


@dataclass
class DiscoveryResult:
    records: List[BundleRecord] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)


class BundleDiscovery:
    def __init__(self, *, modules_dir: str, config: Optional[LoaderConfig] = None, logger: Optional[logging.Logger] = None):
        self.modules_dir = str(modules_dir)
        self.config = config or LoaderConfig()
        self.logger = logger or get_logger("discovery")

    def _candidates(self) -> List[str]:
        out: List[str] = []
        for name in sorted(os.listdir(self.modules_dir)):
            if name.startswith("."):
                continue
            if not name.endswith(self.config.bundle_suffix):
                continue
            path = os.path.join(self.modules_dir, name)
            if not os.path.isfile(path):
                continue
            out.append(path)
        return out

    def read_bundle(self, path: str) -> BundleRecord:
        """Open one archive and parse its manifest; the archive is closed again on failure."""
        archive = BundleArchive(path)
        try:
            raw = archive.read_optional(self.config.manifest_entry)
            if raw is None:
                raise ManifestError(f"Bundle has no {self.config.manifest_entry}.", source=path)
            manifest = parse_manifest(raw, source=path)
        except BaseException:
            archive.release()
            raise
        return BundleRecord(path=path, manifest=manifest, archive=archive)

    def scan(self) -> DiscoveryResult:
        result = DiscoveryResult()
        if not os.path.isdir(self.modules_dir):
            if self.config.create_modules_dir:
                self.logger.debug("Modules directory does not exist, creating: %s", self.modules_dir)
                try:
                    os.makedirs(self.modules_dir, exist_ok=True)
                except OSError as e:
                    self.logger.error("Could not create modules directory %s: %s", self.modules_dir, e)
            return result

        self.logger.debug("Path to modules: %s", self.modules_dir)
        try:
            candidates = self._candidates()
        except OSError as e:
            self.logger.error("Could not list modules directory %s: %s", self.modules_dir, e)
            return result
        for path in candidates:
            try:
                rec = self.read_bundle(path)
            except ModHostError as e:
                self._skip(result, path, str(e))
                continue
            except Exception as e:  # noqa: BLE001
                # corrupt member data surfaces as zlib/zipfile errors at read time
                self._skip(result, path, str(DiscoveryError(path=path, error=str(e)[:200])))
                continue
            self.logger.debug("Discovered bundle %s at %s", rec.module_id, path)
            result.records.append(rec)
        return result

    def _skip(self, result: DiscoveryResult, path: str, error: str) -> None:
        self.logger.warning("Skipping bundle %s: %s", path, error)
        result.skipped.append(SkippedFile(path=path, error=error[:500]))
