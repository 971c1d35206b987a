from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ModHostError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return f"{self.code}: {self.user_message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


# ---- Configuration ----
class ConfigError(ModHostError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


# ---- Discovery ----
class ManifestError(ModHostError):
    def __init__(self, user_message: str = "Bundle manifest is missing or invalid.", **ctx: Any):
        super().__init__("manifest_invalid", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class DiscoveryError(ModHostError):
    def __init__(self, user_message: str = "Bundle could not be read.", **ctx: Any):
        super().__init__("discovery_error", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class ArchiveClosedError(ModHostError):
    def __init__(self, user_message: str = "Bundle archive was already released.", **ctx: Any):
        super().__init__("archive_closed", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


# ---- Resolution ----
class DuplicateModuleIdError(ModHostError):
    def __init__(self, module_id: str, paths: Iterable[str] = ()):
        super().__init__(
            "duplicate_module_id",
            f"Bundle id '{module_id}' is declared by more than one bundle.",
            severity=Severity.CRITICAL,
            recoverable=False,
            context={"module_id": module_id, "paths": sorted(str(p) for p in paths)},
        )


class MissingDependencyError(ModHostError):
    def __init__(self, module_id: str, missing: Iterable[str]):
        super().__init__(
            "missing_dependency",
            f"Bundle '{module_id}' is missing dependencies: {', '.join(missing)}.",
            severity=Severity.ERROR,
            recoverable=True,
            context={"module_id": module_id, "missing": list(missing)},
        )


class DependencyCycleError(ModHostError):
    def __init__(self, members: Iterable[str]):
        ids: List[str] = sorted(set(members))
        super().__init__(
            "dependency_cycle",
            f"Dependency cycle between bundles: {', '.join(ids)}.",
            severity=Severity.CRITICAL,
            recoverable=False,
            context={"members": ids},
        )

    @property
    def members(self) -> List[str]:
        return list(self.context.get("members") or [])


# ---- Activation ----
class ActivationError(ModHostError):
    def __init__(self, user_message: str = "Bundle failed to activate.", **ctx: Any):
        super().__init__("activation_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class EntryPointError(ModHostError):
    def __init__(self, user_message: str = "Bundle must declare exactly one module entry point.", **ctx: Any):
        super().__init__("entry_point_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


# ---- Localization / registries / events ----
class TranslationError(ModHostError):
    def __init__(self, user_message: str = "Translation could not be registered.", **ctx: Any):
        super().__init__("translation_error", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class RegistryError(ModHostError):
    def __init__(self, user_message: str = "Registry conflict.", **ctx: Any):
        super().__init__("registry_error", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class EventArgsSealedError(ModHostError):
    def __init__(self, user_message: str = "Monitor handlers cannot change cancellation.", **ctx: Any):
        super().__init__("event_args_sealed", user_message, severity=Severity.WARN, recoverable=True, context=ctx)
