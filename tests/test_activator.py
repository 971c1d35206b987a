from __future__ import annotations

import json
import linecache
import logging
import os
import sys
import traceback

import pytest

from modhost.core.bundles import BundleNamespace
from modhost.core.modules.activator import ModuleActivator
from modhost.core.modules.contract import Module
from modhost.core.modules.discovery import BundleDiscovery
from modhost.core.modules.models import ModuleReasonCode
from modhost.core.resources import ResourcePacks

from .helpers import recorder
from .helpers.bundles import build_bundle
from .helpers.fakes import FailingResources, StubFacade

LOG = logging.getLogger("modhost.test.activator")

TWO_ENTRIES = '''
from modhost.core.modules.contract import Module, module_entry


@module_entry
class A(Module):
    def after_all_loaded(self):
        pass


@module_entry
def make_b():
    return A()
'''

NO_ENTRY = '''
from modhost.core.modules.contract import Module


class Plain(Module):
    def after_all_loaded(self):
        pass
'''

NOT_A_MODULE = '''
from modhost.core.modules.contract import module_entry


@module_entry
def build():
    return object()
'''

RAISES_AT_IMPORT = '''
raise RuntimeError("payload exploded")
'''

FUNCTION_ENTRY = '''
from modhost.core.modules.contract import Module, module_entry


class Impl(Module):
    def after_all_loaded(self):
        pass


@module_entry
def create():
    return Impl()
'''

SUBCLASS_OF_ENTRY = '''
from modhost.core.modules.contract import Module, module_entry


@module_entry
class Base(Module):
    def after_all_loaded(self):
        pass


class Derived(Base):
    pass
'''

IMPORTS_EARLIER_BUNDLE = '''
from modhost.core.modules.contract import Module, module_entry
from .core import BundleModule as CoreModule
from tests.helpers import recorder


@module_entry
class UiModule(Module):
    def __init__(self):
        recorder.record("ui_sees_core", CoreModule.__name__)

    def after_all_loaded(self):
        pass
'''

CHECKS_FACADE = '''
from modhost.core.modules.contract import Module, module_entry
from tests.helpers import recorder


@module_entry
class UiModule(Module):
    def after_all_loaded(self):
        recorder.record("core_loaded", self.module_manager.is_loaded("core"))
        recorder.record("ghost_loaded", self.module_manager.is_loaded("ghost"))
'''

EXITS_AT_IMPORT = '''
import sys

sys.exit(3)
'''

FACTORY_EXITS = '''
import sys

from modhost.core.modules.contract import module_entry


@module_entry
def build():
    sys.exit("bye")
'''

REJECTED_CORE = '''
from modhost.core.modules.contract import Module

VALUE = "rejected-core"


class CoreModule(Module):
    def after_all_loaded(self):
        pass
'''

USES_CORE_VALUE = '''
from modhost.core.modules.contract import Module, module_entry
from tests.helpers import recorder

from .core import VALUE

recorder.record("ui_imported", VALUE)


@module_entry
class UiModule(Module):
    def after_all_loaded(self):
        pass
'''

TRACEBACK_PAYLOAD = '''
from modhost.core.modules.contract import Module, module_entry


@module_entry
class TracebackModule(Module):
    def after_all_loaded(self):
        raise ValueError("from bundle code")
'''


def _records(modules_dir):
    res = BundleDiscovery(modules_dir=str(modules_dir)).scan()
    assert res.skipped == []
    return res.records


def _activator(facade=None, resources=None, on_loaded=None, namespace=None):
    return ModuleActivator(
        facade=facade or StubFacade(),
        resources=resources if resources is not None else ResourcePacks(),
        logger=LOG,
        on_loaded=on_loaded,
        namespace=namespace,
    )


def test_activates_bundle_and_wires_manifest_and_facade(bundle_factory, modules_dir):
    bundle_factory("core")
    facade = StubFacade()
    recs = _records(modules_dir)
    act = _activator(facade=facade)
    out = act.activate(recs)

    assert out.failed == []
    assert [lm.module_id for lm in out.loaded] == ["core"]
    mod = out.loaded[0].module
    assert isinstance(mod, Module)
    assert mod.manifest.id == "core"
    assert mod.module_manager is facade
    assert out.loaded[0].manager is facade
    assert recorder.of_kind("init") == ["core"]
    assert all(r.released for r in recs)
    assert act.namespace.get("core") is sys.modules[act.namespace.qualified("core")]
    assert type(mod).__module__ == act.namespace.qualified("core")


def test_function_entry_point(bundle_factory, modules_dir):
    bundle_factory("fn", payload=FUNCTION_ENTRY)
    out = _activator().activate(_records(modules_dir))
    assert [lm.module_id for lm in out.loaded] == ["fn"]
    assert type(out.loaded[0].module).__name__ == "Impl"


def test_subclass_of_entry_is_not_a_second_entry(bundle_factory, modules_dir):
    bundle_factory("sub", payload=SUBCLASS_OF_ENTRY)
    out = _activator().activate(_records(modules_dir))
    assert out.failed == []
    assert type(out.loaded[0].module).__name__ == "Base"


def test_failures_are_isolated_and_released(bundle_factory, modules_dir, caplog):
    bundle_factory("a_nopayload", payload=False)
    bundle_factory("b_two", payload=TWO_ENTRIES)
    bundle_factory("c_none", payload=NO_ENTRY)
    bundle_factory("d_notmodule", payload=NOT_A_MODULE)
    bundle_factory("e_raises", payload=RAISES_AT_IMPORT)
    bundle_factory("f_good")
    bundle_factory("g_exits", payload=EXITS_AT_IMPORT)
    bundle_factory("h_factory_exits", payload=FACTORY_EXITS)
    recs = _records(modules_dir)
    ns = BundleNamespace()

    with caplog.at_level(logging.ERROR, logger="modhost"):
        out = _activator(namespace=ns).activate(recs)

    assert [lm.module_id for lm in out.loaded] == ["f_good"]
    failed = {f.module_id: f for f in out.failed}
    assert sorted(failed) == ["a_nopayload", "b_two", "c_none", "d_notmodule", "e_raises", "g_exits", "h_factory_exits"]
    assert {f.reason_code for f in out.failed} == {ModuleReasonCode.ACTIVATION_FAILED}
    assert "found 2" in failed["b_two"].detail
    assert "found 0" in failed["c_none"].detail
    assert "payload exploded" in failed["e_raises"].detail
    assert all(r.released for r in recs)
    assert "exit(3)" in failed["g_exits"].detail
    assert "exit('bye')" in failed["h_factory_exits"].detail
    assert ns.module_ids() == ["f_good"]
    for mid in failed:
        assert ns.qualified(mid) not in sys.modules
        assert not hasattr(ns.package(), mid)
    assert "Exception loading module" in caplog.text


def test_resource_pack_failure_is_not_fatal(bundle_factory, modules_dir, caplog):
    bundle_factory("core")
    resources = FailingResources()
    with caplog.at_level(logging.ERROR, logger="modhost"):
        out = _activator(resources=resources).activate(_records(modules_dir))
    assert [lm.module_id for lm in out.loaded] == ["core"]
    assert len(resources.attempts) == 1
    assert "Failed to load resource pack for module core" in caplog.text


def test_resource_pack_exception_is_not_fatal(bundle_factory, modules_dir):
    bundle_factory("core")
    out = _activator(resources=FailingResources(explode=True)).activate(_records(modules_dir))
    assert [lm.module_id for lm in out.loaded] == ["core"]
    assert out.failed == []


def test_successful_bundles_are_mounted_as_resource_packs(bundle_factory, modules_dir):
    path = bundle_factory("core")
    bundle_factory("broken", payload=RAISES_AT_IMPORT)
    resources = ResourcePacks()
    _activator(resources=resources).activate(_records(modules_dir))
    assert resources.packs() == [path]


def test_later_bundle_can_import_earlier_one(bundle_factory, modules_dir):
    bundle_factory("core")
    bundle_factory("ui", payload=IMPORTS_EARLIER_BUNDLE, deps=["core"])
    out = _activator().activate(_records(modules_dir))
    assert [lm.module_id for lm in out.loaded] == ["core", "ui"]
    assert recorder.of_kind("ui_sees_core") == ["BundleModule"]


def test_is_loaded_sees_modules_appended_during_activation(bundle_factory, modules_dir):
    bundle_factory("core")
    loaded = []

    class ListFacade:
        def is_loaded(self, module_id):  # noqa: ANN001
            return any(lm.module_id == module_id for lm in loaded)

    seen = []
    act = _activator(facade=ListFacade(), on_loaded=lambda lm: seen.append(lm.manager.is_loaded(lm.module_id)))
    out = act.activate(_records(modules_dir), loaded=loaded)
    assert out.loaded is loaded
    assert seen == [True]


def test_facade_answers_is_loaded_for_bundle_code(bundle_factory, modules_dir):
    bundle_factory("ui", payload=CHECKS_FACADE)
    out = _activator(facade=StubFacade(["core", "ui"])).activate(_records(modules_dir))
    out.loaded[0].module.after_all_loaded()
    assert recorder.of_kind("core_loaded") == [True]
    assert recorder.of_kind("ghost_loaded") == [False]


def test_tracebacks_show_bundle_source(bundle_factory, modules_dir):
    bundle_factory("tb", payload=TRACEBACK_PAYLOAD)
    out = _activator().activate(_records(modules_dir))
    with pytest.raises(ValueError) as ei:
        out.loaded[0].module.after_all_loaded()
    text = "".join(traceback.format_exception(ei.type, ei.value, ei.tb))
    assert 'raise ValueError("from bundle code")' in text


def test_debug_entry_registers_extra_sources(bundle_factory, modules_dir):
    path = bundle_factory("dbg", extra={"dbg.debug.json": json.dumps({"helper.py": "x = 1\ny = 2\n"})})
    out = _activator().activate(_records(modules_dir))
    assert out.failed == []
    assert linecache.getline(os.path.join(path, "helper.py"), 2) == "y = 2\n"


def test_malformed_debug_entry_is_ignored(bundle_factory, modules_dir, caplog):
    bundle_factory("dbg", extra={"dbg.debug.json": "[1, 2"})
    with caplog.at_level(logging.WARNING, logger="modhost"):
        out = _activator().activate(_records(modules_dir))
    assert [lm.module_id for lm in out.loaded] == ["dbg"]
    assert "Ignoring malformed debug entry" in caplog.text


def test_released_record_fails_activation(bundle_factory, modules_dir):
    bundle_factory("core")
    recs = _records(modules_dir)
    recs[0].release()
    out = _activator().activate(recs)
    assert out.loaded == []
    assert out.failed[0].reason_code == ModuleReasonCode.ACTIVATION_FAILED


def test_rejected_bundle_is_not_importable_by_dependents(bundle_factory, modules_dir):
    bundle_factory("core", payload=REJECTED_CORE)
    bundle_factory("ui", payload=USES_CORE_VALUE, deps=["core"])
    out = _activator().activate(_records(modules_dir))

    assert out.loaded == []
    assert sorted(f.module_id for f in out.failed) == ["core", "ui"]
    assert recorder.of_kind("ui_imported") == []


def test_exit_in_bundle_code_does_not_stop_activation(bundle_factory, modules_dir):
    bundle_factory("a_exit", payload=EXITS_AT_IMPORT)
    bundle_factory("b_good")
    out = _activator().activate(_records(modules_dir))
    assert [lm.module_id for lm in out.loaded] == ["b_good"]
    assert [f.module_id for f in out.failed] == ["a_exit"]


def test_raising_loaded_callback_does_not_stop_activation(bundle_factory, modules_dir, caplog):
    bundle_factory("a")
    bundle_factory("b")
    seen = []

    def on_loaded(lm):  # noqa: ANN001
        seen.append(lm.module_id)
        raise RuntimeError("listener broke")

    with caplog.at_level(logging.ERROR, logger="modhost"):
        out = _activator(on_loaded=on_loaded).activate(_records(modules_dir))
    assert [lm.module_id for lm in out.loaded] == ["a", "b"]
    assert seen == ["a", "b"]
    assert out.failed == []
    assert "Exception in loaded callback for module a" in caplog.text


def test_namespaces_are_isolated(bundle_factory, modules_dir, tmp_path):
    bundle_factory("core")
    first = _activator()
    first.activate(_records(modules_dir))

    other = tmp_path / "other"
    build_bundle(str(other), "ui", payload=IMPORTS_EARLIER_BUNDLE)
    second = _activator()
    out = second.activate(_records(other))

    assert first.namespace.name != second.namespace.name
    assert out.loaded == []
    assert "core" in out.failed[0].detail
    assert recorder.of_kind("ui_sees_core") == []
