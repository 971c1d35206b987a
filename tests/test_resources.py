from __future__ import annotations

import pytest

from modhost.core.resources import ResourcePacks

from .helpers.bundles import build_bundle


def test_mount_and_read(tmp_path):
    path = build_bundle(str(tmp_path), "core", extra={"data/a.txt": "alpha", "data/sub/b.txt": "beta"})
    res = ResourcePacks()
    assert res.load_resource_pack(path) is True
    assert res.load_resource_pack(path) is True
    assert res.packs() == [path]

    assert res.read_text("res://data/a.txt") == "alpha"
    assert res.exists("data/sub/b.txt")
    assert not res.exists("data/c.txt")
    assert res.list_dir("res://data") == ["a.txt"]
    with pytest.raises(FileNotFoundError):
        res.read_bytes("data/c.txt")


def test_first_mounted_pack_wins(tmp_path):
    first = build_bundle(str(tmp_path), "one", extra={"shared.txt": "first"})
    second = build_bundle(str(tmp_path), "two", extra={"shared.txt": "second", "only2.txt": "x"})
    res = ResourcePacks()
    res.load_resource_pack(first)
    res.load_resource_pack(second)
    assert res.read_text("shared.txt") == "first"
    assert res.read_text("only2.txt") == "x"
    assert "shared.txt" in res.list_dir("")


def test_non_zip_is_refused(tmp_path):
    bad = tmp_path / "x.zip"
    bad.write_text("nope", encoding="utf-8")
    res = ResourcePacks()
    assert res.load_resource_pack(str(bad)) is False
    assert res.load_resource_pack(str(tmp_path / "missing.zip")) is False
    assert res.packs() == []
