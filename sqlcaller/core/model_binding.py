"""Model Binding — a facade's reference to its model, direct or deferred by name.

Invariants:
    - A binding is either DirectBinding (a handle) or DeferredBinding (an import path)
    - DeferredBinding reads its attribute at resolve() time, not at bind time
    - Resolution failures and None results raise ConfigurationError

Design Decisions:
    - Tagged union of two frozen dataclasses instead of a str-or-object attribute
    - "package.module:attribute" paths; "package.module.attribute" also accepted
"""

import importlib
from dataclasses import dataclass
from typing import Any

from sqlcaller.core.errors import ConfigurationError


@dataclass(frozen=True)
class DirectBinding:
    handle: Any

    def resolve(self) -> Any:
        return self.handle


@dataclass(frozen=True)
class DeferredBinding:
    """Model named by import path, looked up on first use."""
    path: str

    def resolve(self) -> Any:
        module_name, attribute = _split_path(self.path)
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise ConfigurationError(
                f"cannot import '{module_name}' for model binding '{self.path}'",
            ) from exc
        try:
            handle = getattr(module, attribute)
        except AttributeError as exc:
            raise ConfigurationError(
                f"'{module_name}' has no attribute '{attribute}' (model binding '{self.path}')",
            ) from exc
        if handle is None:
            raise ConfigurationError(f"model binding '{self.path}' resolved to None")
        return handle


ModelBinding = DirectBinding | DeferredBinding


def bind(target: Any) -> ModelBinding:
    """Build a binding: strings are deferred import paths, anything else is direct."""
    if isinstance(target, (DirectBinding, DeferredBinding)):
        return target
    if isinstance(target, str):
        _split_path(target)
        return DeferredBinding(target)
    return DirectBinding(target)


def _split_path(path: str) -> tuple[str, str]:
    if ":" in path:
        module_name, _, attribute = path.partition(":")
    else:
        module_name, _, attribute = path.rpartition(".")
    if not module_name or not attribute:
        raise ConfigurationError(f"invalid model binding path '{path}'")
    return module_name, attribute
