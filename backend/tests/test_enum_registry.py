import json

import pytest
from pydantic import ValidationError

from configurator.engine.enums import (
    CHIPSET_TYPE, FORM_FACTOR, MEMORY_TYPE, SOCKET_TYPE, EnumRegistry, default_registry, load_enum_registry,
)


def test_builtin_sources(registry):
    assert registry.has_source(SOCKET_TYPE)
    assert registry.has_source(MEMORY_TYPE)
    assert registry.has_source(CHIPSET_TYPE)
    assert not registry.has_source("NOPE")
    assert not registry.has_source(None)
    assert registry.values(MEMORY_TYPE) == ["DDR4", "DDR5"]
    assert registry.values("NOPE") == []


@pytest.mark.parametrize("raw, expected", [
    ("AM4", "AM4"),
    ("am4", "AM4"),
    ("LGA 1700", "LGA1700"),
    ("Socket AM5", "AM5"),
    ("lga_1200", "LGA1200"),
    ("AM3", None),
])
def test_canonicalize_socket(registry, raw, expected):
    assert registry.canonicalize(SOCKET_TYPE, raw) == expected


def test_canonicalize_form_factor_alias(registry):
    assert registry.canonicalize(FORM_FACTOR, "mATX") == "Micro ATX"
    assert registry.canonicalize(FORM_FACTOR, "mini-itx") == "Mini ITX"


def test_relations_for_chipset(registry):
    relations = registry.relations_for("chipset")
    assert len(relations) == 1
    assert relations[0].context_key == "socket"
    assert relations[0].allowed["B550"] == ["AM4"]


def test_registry_is_immutable(registry):
    with pytest.raises(ValidationError):
        registry.sources = {}


def test_default_registry_cached():
    assert default_registry() is default_registry()


def test_load_from_file(tmp_path):
    path = tmp_path / "enums.json"
    path.write_text(json.dumps({
        "sources": {SOCKET_TYPE: {"name": SOCKET_TYPE, "values": ["AM4"]}},
    }), encoding="utf-8")

    loaded = load_enum_registry(str(path))
    assert isinstance(loaded, EnumRegistry)
    assert loaded.source_names() == [SOCKET_TYPE]
    assert loaded.relations == []


def test_load_without_path_returns_builtin():
    assert load_enum_registry(None) is default_registry()


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_enum_registry(str(tmp_path / "missing.json"))
