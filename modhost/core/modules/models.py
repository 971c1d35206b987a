from __future__ import annotations

"""
Pipeline records and the report handed back to the host.

BundleRecord/LoadedModule are in-process objects (they hold a live archive or a
module instance); RemovedBundle/PipelineReport are plain pydantic models safe to
log, print or serialize.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modhost.core.modules.archive import BundleArchive
from modhost.core.modules.manifest import Manifest

if TYPE_CHECKING:
    from modhost.core.modules.contract import Module, ModuleManagerFacade


@dataclass
class BundleRecord:
    path: str
    manifest: Manifest
    archive: Optional[BundleArchive]

    @property
    def module_id(self) -> str:
        return self.manifest.id

    @property
    def released(self) -> bool:
        return self.archive is None or self.archive.released

    def release(self) -> bool:
        if self.archive is None:
            return False
        return self.archive.release()


@dataclass
class LoadedModule:
    module: "Module"
    manifest: Manifest
    manager: "ModuleManagerFacade"

    @property
    def module_id(self) -> str:
        return self.manifest.id


class ModuleReasonCode(str, Enum):
    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    DEPENDENCY_CYCLE = "DEPENDENCY_CYCLE"
    DUPLICATE_ID = "DUPLICATE_ID"
    ACTIVATION_FAILED = "ACTIVATION_FAILED"


class RemovedBundle(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    module_id: str
    reason_code: ModuleReasonCode
    detail: str = Field(default="", max_length=500)
    path: str = ""


class SkippedFile(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    error: str = Field(default="", max_length=500)


class PipelineReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    discovered: List[str] = Field(default_factory=list)
    skipped_files: List[SkippedFile] = Field(default_factory=list)
    load_order: List[str] = Field(default_factory=list)
    loaded: List[str] = Field(default_factory=list)
    removed: List[RemovedBundle] = Field(default_factory=list)
    notify_failures: List[str] = Field(default_factory=list)

    def removed_ids(self, reason: Optional[ModuleReasonCode] = None) -> List[str]:
        return [r.module_id for r in self.removed if reason is None or r.reason_code == reason]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
