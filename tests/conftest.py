from __future__ import annotations

import logging

import pytest

from modhost.core.config.models import LoaderConfig
from modhost.core.context import ModHostContext

from .helpers import recorder
from .helpers.bundles import build_bundle


@pytest.fixture(autouse=True)
def _clear_recorder():
    recorder.clear()
    yield
    recorder.clear()


@pytest.fixture
def modules_dir(tmp_path):
    d = tmp_path / "modules"
    d.mkdir()
    return d


@pytest.fixture
def bundle_factory(modules_dir):
    """Build a bundle zip in the test's modules dir: bundle_factory("core", deps=[...])."""

    def _make(module_id: str, **kw):
        return build_bundle(str(modules_dir), module_id, **kw)

    return _make


@pytest.fixture
def context(tmp_path):
    cfg = LoaderConfig(modules_dir=str(tmp_path / "modules"), log_dir=str(tmp_path / "logs"))
    return ModHostContext.create(cfg, logger=logging.getLogger("modhost.test"))
