"""Registry of named plugin constructors with optional default configs.

A plugin type is a class that implementations subclass. A constructor
registered for it builds an implementation, either directly or through a
factory (see ``pandora.plugin.constructor``). A constructor may take one
config argument, annotated with a config class, or ``ConfigClass | None``.
A default config factory may be registered along with the constructor;
without one, the constructor gets a freshly created config class instance.
It never gets None as its config.

Factory types are written as ``Callable[[], PluginType]``.
"""

from __future__ import annotations

import collections.abc
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Callable

from pandora.plugin.constructor import (
    ExpectationError,
    FactoryConstructor,
    PluginConstructor,
    expect,
    new_impl_constructor,
)

FillConf = Callable[[Any], None]

__all__ = [
    "DefaultConfigContainer",
    "ExpectationError",
    "PluginNotFoundError",
    "Registry",
    "default_registry",
    "factory_plugin_type",
    "factory_type",
    "is_factory_type",
    "lookup",
    "lookup_factory",
    "new",
    "new_default_config_container",
    "new_factory",
    "register",
    "set_default_registry",
]


class PluginNotFoundError(LookupError):
    """Raised when no constructor is registered for a plugin type and name."""


class _NoConfig:
    """Stands in for the config of constructors that take none: it has no fields."""

    __slots__ = ()


class _Empty:
    """Marks a missing annotation."""


_EMPTY = _Empty


@dataclass(frozen=True)
class _Signature:
    params: list[tuple[str, Any]] = field(default_factory=list)
    return_annotation: Any = _EMPTY


def _function_and_skip(fn: Any) -> tuple[Any, int] | None:
    if isinstance(fn, type):
        init = fn.__init__
        if init is object.__init__:
            return None
        return init, 1
    if isinstance(fn, types.MethodType):
        return fn.__func__, 1
    if isinstance(fn, types.FunctionType):
        return fn, 0
    call = getattr(type(fn), "__call__", None)
    if isinstance(call, types.FunctionType):
        return call, 1
    return None


def _signature(fn: Any) -> _Signature | None:
    """Describe the required positional parameters of fn, or None if unknown."""
    if isinstance(fn, type) and fn.__init__ is object.__init__:
        return _Signature()
    found = _function_and_skip(fn)
    if found is None:
        return None
    func, skip = found
    code = getattr(func, "__code__", None)
    if code is None:
        return None
    names = code.co_varnames[: code.co_argcount]
    defaults = getattr(func, "__defaults__", None) or ()
    required = names[skip : len(names) - len(defaults)]
    annotations = getattr(func, "__annotations__", None) or {}
    params = [(name, annotations.get(name, _EMPTY)) for name in required]
    return_annotation = _EMPTY if isinstance(fn, type) else annotations.get("return", _EMPTY)
    return _Signature(params, return_annotation)


def _required_params(sig: _Signature | None) -> list[tuple[str, Any]]:
    if sig is None:
        return []
    return sig.params


def _normalize(annotation: Any) -> tuple[Any, bool]:
    """Split an annotation into (type, may_be_none); type is None when unknown."""
    if annotation is _EMPTY or isinstance(annotation, str):
        return None, False
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = typing.get_args(annotation)
        non_none = [arg for arg in args if arg is not type(None)]
        expect(len(non_none) == 1, "unexpected config type %r; should be a class", annotation)
        return non_none[0], len(non_none) < len(args)
    return annotation, False


def _is_config_class(tp: Any) -> bool:
    return isinstance(tp, type) and tp.__module__ != "builtins"


class DefaultConfigContainer:
    """Creates the config a constructor gets; knows whether one is needed at all."""

    def __init__(
        self,
        new_value: Callable[[], Any] | None = None,
        config_type: Any = None,
    ) -> None:
        self._new_value = new_value
        self._config_type = config_type

    def config_required(self) -> bool:
        return self._new_value is not None

    def get(self, fill_conf: FillConf | None = None) -> list[Any]:
        """Return the constructor arguments: [config], or [] if none is taken.

        fill_conf is called on the new config, or on an object without fields
        when the constructor takes no config. Its exceptions propagate.
        """
        if self.config_required():
            conf = self._new()
            maybe_conf = [conf]
        else:
            conf = _NoConfig()
            maybe_conf = []
        if fill_conf is not None:
            fill_conf(conf)
        return maybe_conf

    def _new(self) -> Any:
        conf = self._new_value()
        if conf is None:
            if self._config_type is None:
                raise TypeError("default config is None and config type is unknown")
            conf = self._config_type()
        return conf


def new_default_config_container(
    constructor: Callable[..., Any], default_config: Callable[[], Any] | None = None
) -> DefaultConfigContainer:
    """Check constructor and default config factory against each other."""
    params = _required_params(_signature(constructor))
    if not params:
        expect(default_config is None, "constructor accepts no config, but default config passed")
        return DefaultConfigContainer()
    expect(len(params) == 1, "constructor should accept zero or one argument")
    annotation = params[0][1]
    config_type, optional = _normalize(annotation)
    if config_type is not None:
        expect(
            _is_config_class(config_type),
            "unexpected config type %r; should be a config class",
            config_type,
        )
    if default_config is None:
        expect(
            config_type is not None,
            "constructor config argument should be annotated, or default config passed",
        )
        return DefaultConfigContainer(config_type, config_type)
    expect(callable(default_config), "default config should be callable, but have: %r", default_config)
    default_sig = _signature(default_config)
    expect(
        not _required_params(default_sig),
        "default config factory should accept nothing, but have: %r",
        default_config,
    )
    if default_sig is not None and config_type is not None:
        returned, returns_none = _normalize(default_sig.return_annotation)
        if returned is not None:
            expect(
                isinstance(returned, type)
                and issubclass(returned, config_type)
                and (optional or not returns_none),
                "default config factory should return constructor argument %r, but returns %r",
                annotation,
                default_sig.return_annotation,
            )
    return DefaultConfigContainer(default_config, config_type)


@dataclass(frozen=True)
class _Entry:
    constructor: PluginConstructor | FactoryConstructor
    default_config: DefaultConfigContainer


def factory_type(plugin_type: type) -> Any:
    """Return the factory type for plugin_type: ``Callable[[], plugin_type]``."""
    return collections.abc.Callable[[], plugin_type]


def is_factory_type(factory_type: Any) -> bool:
    """Return True if factory_type looks like ``Callable[[], SomePluginClass]``."""
    if typing.get_origin(factory_type) is not collections.abc.Callable:
        return False
    args = typing.get_args(factory_type)
    if len(args) != 2:
        return False
    params, result = args
    return params == [] and isinstance(result, type)


def factory_plugin_type(factory_type: Any) -> type | None:
    """Return the plugin type made by factory_type, or None if it is no factory type."""
    if is_factory_type(factory_type):
        return typing.get_args(factory_type)[1]
    return None


class Registry:
    """Maps (plugin type, name) pairs to constructors and default configs."""

    def __init__(self) -> None:
        self._type_to_names: dict[type, dict[str, _Entry]] = {}

    def register(
        self,
        plugin_type: type,
        name: str,
        constructor: Callable[..., Any],
        default_config: Callable[[], Any] | None = None,
    ) -> None:
        """Register constructor, and optionally a default config factory.

        Raises ExpectationError if types do not fit or the name is taken.
        """
        expect(isinstance(plugin_type, type), "plugin type should be a class, but have: %r", plugin_type)
        expect(name != "", "empty name")
        names = self._type_to_names.setdefault(plugin_type, {})
        expect(
            name not in names,
            "plugin %s with name %r had been already registered",
            plugin_type.__qualname__,
            name,
        )
        impl_constructor = new_impl_constructor(plugin_type, constructor)
        container = new_default_config_container(constructor, default_config)
        names[name] = _Entry(impl_constructor, container)

    def lookup(self, plugin_type: Any) -> bool:
        """Return True if any constructor is registered for plugin_type."""
        try:
            return plugin_type in self._type_to_names
        except TypeError:
            return False

    def lookup_factory(self, factory_type: Any) -> bool:
        """Return True if factory_type is a factory type whose plugin type has constructors."""
        plugin_type = factory_plugin_type(factory_type)
        return plugin_type is not None and self.lookup(plugin_type)

    def new(self, plugin_type: type, name: str, fill_conf: FillConf | None = None) -> Any:
        """Create a plugin; fill_conf is applied to its config first."""
        expect(isinstance(plugin_type, type), "plugin type should be a class, but have: %r", plugin_type)
        expect(name != "", "empty name")
        entry = self._get(plugin_type, name)
        conf = entry.default_config.get(fill_conf)
        return entry.constructor.new_plugin(conf)

    def new_factory(
        self, factory_type: Any, name: str, fill_conf: FillConf | None = None
    ) -> Callable[[], Any]:
        """Create a factory of plugins.

        For plugin constructors the config is made and filled on every call;
        for factory constructors only once, now.
        """
        expect(
            is_factory_type(factory_type),
            "plugin factory type should be like Callable[[], PluginType], but have: %r",
            factory_type,
        )
        expect(name != "", "empty name")
        entry = self._get(factory_plugin_type(factory_type), name)
        get_maybe_conf = None
        if entry.default_config.config_required():

            def get_maybe_conf() -> list[Any]:
                return entry.default_config.get(fill_conf)

        elif fill_conf is not None:
            # No config fields: just make sure filling does not fail.
            fill_conf(_NoConfig())
        return entry.constructor.new_factory(get_maybe_conf)

    def _get(self, plugin_type: type, name: str) -> _Entry:
        names = self._type_to_names.get(plugin_type)
        if names is None:
            raise PluginNotFoundError(
                f"no plugins for type {plugin_type.__qualname__} has been registered"
            )
        try:
            return names[name]
        except KeyError:
            raise PluginNotFoundError(
                f"no plugins of type {plugin_type.__qualname__} has been registered for name {name}"
            ) from None


_default_registry = Registry()


def default_registry() -> Registry:
    """Return the registry used by the module-level functions."""
    return _default_registry


def set_default_registry(registry: Registry) -> None:
    """Replace the registry used by the module-level functions."""
    global _default_registry
    _default_registry = registry


def register(
    plugin_type: type,
    name: str,
    constructor: Callable[..., Any],
    default_config: Callable[[], Any] | None = None,
) -> None:
    default_registry().register(plugin_type, name, constructor, default_config)


def lookup(plugin_type: Any) -> bool:
    return default_registry().lookup(plugin_type)


def lookup_factory(factory_type: Any) -> bool:
    return default_registry().lookup_factory(factory_type)


def new(plugin_type: type, name: str, fill_conf: FillConf | None = None) -> Any:
    return default_registry().new(plugin_type, name, fill_conf)


def new_factory(factory_type: Any, name: str, fill_conf: FillConf | None = None) -> Callable[[], Any]:
    return default_registry().new_factory(factory_type, name, fill_conf)