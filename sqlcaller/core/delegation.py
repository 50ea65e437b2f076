"""Static Delegation — class-level entry points that forward to a singleton instance.

Invariants:
    - Facade.op(...) is the same call as Facade.instance().op(...)
    - Instance access to a delegated operation is an ordinary bound method
    - Registration is idempotent: each name is bound once, however often it is listed
    - Class-level lookups made here never trigger singleton creation

Design Decisions:
    - singleton_method descriptor instead of a parallel set of classmethods:
      one function serves both call surfaces
    - delegate(cls, *names, to=...) is a plain function applied after the class body,
      one registration call lists the whole static surface
"""

from functools import update_wrapper
from types import MethodType
from typing import Any, Callable

SINGLETON = "instance"


class singleton_method:
    """Method that binds to the instance, or to owner.instance() on class access."""

    def __init__(self, func: Callable):
        self.__func__ = func
        update_wrapper(self, func)

    def __get__(self, obj: Any, owner: type | None = None) -> MethodType:
        if obj is None:
            obj = owner.instance()
        return MethodType(self.__func__, obj)


def sql_method(name: str) -> Callable:
    """Raw passthrough: substitute binds (if any), then call the connection primitive."""

    def method(self, sql: str, *binds: Any) -> Any:
        if binds:
            sql = self.sanitize_sql_array(sql, *binds)
        return getattr(self.connection(), name)(sql)

    method.__name__ = name
    method.__qualname__ = name
    method.__doc__ = f"Run connection.{name}() with binds substituted into sql."
    return method


def delegate(cls: type, *names: str, to: str) -> None:
    """Register delegations on cls.

    to="instance" exposes each named operation on the class itself, routed to the
    process-wide singleton. Any other value forwards instance calls to the
    attribute of that name (e.g. to="model" makes self.connection() call
    self.model.connection()).
    """
    if not names:
        raise ValueError("provide at least one method name")
    registry = cls.__dict__.get("_delegations")
    if registry is None:
        registry = dict(_lookup_static(cls, "_delegations") or {})
        cls._delegations = registry
    for name in dict.fromkeys(names):
        if to == SINGLETON:
            _expose_static(cls, name)
        else:
            _forward(cls, name, to)
        registry[name] = to


def redelegate_overrides(cls: type) -> None:
    """Keep the static surface for operations a subclass redefines."""
    registry = _lookup_static(cls, "_delegations") or {}
    overridden = [
        name for name, target in registry.items()
        if target == SINGLETON
        and callable(cls.__dict__.get(name))
        and not isinstance(cls.__dict__[name], singleton_method)
    ]
    if overridden:
        delegate(cls, *overridden, to=SINGLETON)


def _expose_static(cls: type, name: str) -> None:
    attr = _lookup_static(cls, name)
    if isinstance(attr, singleton_method):
        return
    if not callable(attr):
        raise AttributeError(f"{cls.__name__} has no operation '{name}'")
    setattr(cls, name, singleton_method(attr))


def _forward(cls: type, name: str, target: str) -> None:
    current = cls.__dict__.get(name)
    if getattr(current, "_delegate_target", None) == target:
        return

    def forward(self, *args: Any, **kwargs: Any) -> Any:
        return getattr(getattr(self, target), name)(*args, **kwargs)

    forward.__name__ = name
    forward.__qualname__ = f"{cls.__qualname__}.{name}"
    forward.__doc__ = f"Forward to self.{target}.{name}()."
    forward._delegate_target = target
    setattr(cls, name, forward)


def _lookup_static(cls: type, name: str) -> Any:
    for klass in cls.__mro__:
        if name in klass.__dict__:
            return klass.__dict__[name]
    return None
