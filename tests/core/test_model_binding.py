"""Model Binding — tests for direct and deferred (import path) bindings."""

import sys
import types

import pytest

from sqlcaller.core.errors import ConfigurationError
from sqlcaller.core.model_binding import DeferredBinding, DirectBinding, bind
from sqlcaller.core.type_registry import get_default_registry
from sqlcaller.infrastructure.database import DatabaseManager


@pytest.fixture
def fake_module(monkeypatch):
    module = types.ModuleType("fake_models")
    module.manager = None
    monkeypatch.setitem(sys.modules, "fake_models", module)
    return module


def test_bind_string_is_deferred():
    assert bind("fake_models:manager") == DeferredBinding("fake_models:manager")


def test_bind_object_is_direct():
    handle = object()
    binding = bind(handle)
    assert isinstance(binding, DirectBinding)
    assert binding.resolve() is handle


def test_bind_returns_existing_binding():
    binding = DeferredBinding("fake_models:manager")
    assert bind(binding) is binding


def test_bind_rejects_path_without_attribute():
    with pytest.raises(ConfigurationError, match="invalid model binding path"):
        bind("fake_models")


def test_deferred_binding_resolves_colon_path():
    binding = DeferredBinding("sqlcaller.infrastructure.database:DatabaseManager")
    assert binding.resolve() is DatabaseManager


def test_deferred_binding_resolves_dotted_path():
    binding = DeferredBinding("sqlcaller.core.type_registry.get_default_registry")
    assert binding.resolve() is get_default_registry


def test_deferred_binding_reads_attribute_at_resolve_time(fake_module):
    binding = bind("fake_models:manager")
    fake_module.manager = "ready"
    assert binding.resolve() == "ready"


def test_deferred_binding_to_none_raises(fake_module):
    with pytest.raises(ConfigurationError, match="resolved to None"):
        DeferredBinding("fake_models:manager").resolve()


def test_deferred_binding_missing_module_raises():
    with pytest.raises(ConfigurationError, match="cannot import"):
        DeferredBinding("no_such_package_xyz:manager").resolve()


def test_deferred_binding_missing_attribute_raises(fake_module):
    with pytest.raises(ConfigurationError, match="has no attribute"):
        DeferredBinding("fake_models:missing").resolve()
