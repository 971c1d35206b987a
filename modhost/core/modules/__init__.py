"""
Bundle discovery, dependency resolution and ordered module activation.

Bundles are zip archives holding a manifest, a Python payload named after the
bundle id, and optional resources (locale files under ``module/<id>/i18n/``).
"""

from modhost.core.modules.contract import Module, ModuleManagerFacade, module_entry
from modhost.core.modules.manager import ModuleLoadedArgs, ModuleManager
from modhost.core.modules.manifest import Manifest, parse_manifest
from modhost.core.modules.models import ModuleReasonCode, PipelineReport

__all__ = [
    "Manifest",
    "Module",
    "ModuleLoadedArgs",
    "ModuleManager",
    "ModuleManagerFacade",
    "ModuleReasonCode",
    "PipelineReport",
    "module_entry",
    "parse_manifest",
]
