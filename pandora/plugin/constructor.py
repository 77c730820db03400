"""Constructors that build plugin implementations and plugin factories.

A plugin type is a class (usually abstract) that implementations subclass.
A registered constructor is either a plugin constructor,
``new_plugin([config]) -> impl``, or a factory constructor,
``new_factory([config]) -> (() -> impl)``. Failures are raised as exceptions.
"""

from __future__ import annotations

import collections.abc
import typing
from dataclasses import dataclass
from typing import Any, Callable, Sequence

GetMaybeConf = Callable[[], Sequence[Any]]


class ExpectationError(TypeError):
    """Raised when a plugin type expectation is violated."""


def expect(condition: bool, message: str, *args: Any) -> None:
    """Raise ExpectationError with a formatted message unless condition holds."""
    if not condition:
        text = message % args if args else message
        raise ExpectationError("expectation failed: " + text)


def _type_name(tp: Any) -> str:
    return getattr(tp, "__qualname__", repr(tp))


@dataclass(frozen=True)
class _Signature:
    """What is known about a callable's parameters and result."""

    required: tuple[tuple[str, Any], ...]
    keyword_only: tuple[str, ...]
    returns: Any


def _annotation(annotation: Any) -> Any:
    """Return a usable annotation, or None if it is missing or unresolved."""
    if annotation is None or isinstance(annotation, str):
        return None
    return annotation


def _signature(fn: Any) -> _Signature | None:
    """Read a callable's signature from its code object, or None if it has none."""
    skip = 0
    returns: Any = None
    target = fn
    if isinstance(fn, type):
        init = fn.__init__
        if init is object.__init__:
            return _Signature((), (), fn)
        target, skip, returns = init, 1, fn
    elif hasattr(fn, "__func__"):
        target, skip = fn.__func__, 1
    elif not hasattr(fn, "__code__"):
        call = getattr(type(fn), "__call__", None)
        if call is None or not hasattr(call, "__code__"):
            return None
        target, skip = call, 1
    code = getattr(target, "__code__", None)
    if code is None:
        return None
    annotations = getattr(target, "__annotations__", None) or {}
    if returns is None:
        returns = _annotation(annotations.get("return"))
    positional = code.co_varnames[: code.co_argcount]
    n_defaults = len(getattr(target, "__defaults__", None) or ())
    required_names = positional[skip : len(positional) - n_defaults]
    kw_names = code.co_varnames[code.co_argcount : code.co_argcount + code.co_kwonlyargcount]
    kw_defaults = getattr(target, "__kwdefaults__", None) or {}
    keyword_only = tuple(name for name in kw_names if name not in kw_defaults)
    required = tuple((name, _annotation(annotations.get(name))) for name in required_names)
    return _Signature(required, keyword_only, returns)


def _required_params(sig: _Signature) -> tuple[tuple[str, Any], ...]:
    for name in sig.keyword_only:
        expect(False, "constructor should not require keyword-only argument %s", name)
    return sig.required


def _implements(impl_type: Any, plugin_type: Any) -> bool:
    if not isinstance(impl_type, type):
        return True
    try:
        return issubclass(impl_type, plugin_type)
    except TypeError:
        return True


def _is_instance(value: Any, plugin_type: Any) -> bool:
    try:
        return isinstance(value, plugin_type)
    except TypeError:
        return True


def _checked(plugin_type: Any, plugin: Any) -> Any:
    if not _is_instance(plugin, plugin_type):
        raise TypeError(
            f"constructed {type(plugin).__qualname__} does not implement {_type_name(plugin_type)}"
        )
    return plugin


def _check_plugin_callable(
    plugin_type: Any, fn: Any, config_allowed: bool
) -> tuple[bool, Any]:
    """Check a plugin constructor; return whether it takes a config, and the config type."""
    expect(callable(fn), "plugin constructor should be callable, but have: %r", fn)
    sig = _signature(fn)
    if sig is None:
        return False, None
    required = _required_params(sig)
    if config_allowed:
        expect(len(required) <= 1, "plugin constructor should accept config or nothing")
    else:
        expect(
            not required,
            "plugin constructor returned from new factory shouldn't accept any arguments",
        )
    impl_type = sig.returns
    if impl_type is not None:
        expect(
            _implements(impl_type, plugin_type),
            "plugin constructor should implement plugin interface %s",
            _type_name(plugin_type),
        )
    config_type = required[0][1] if required else None
    return bool(required), config_type


def _is_callable_annotation(annotation: Any) -> bool:
    if typing.get_origin(annotation) is collections.abc.Callable:
        return True
    return annotation is collections.abc.Callable


def _check_factory_annotation(plugin_type: Any, annotation: Any) -> None:
    if _is_callable_annotation(annotation):
        args = typing.get_args(annotation)
        if not args:
            return
        params, result = args[0], args[-1]
        if params is not Ellipsis:
            expect(
                len(params) == 0,
                "plugin factory returned from new factory shouldn't accept any arguments",
            )
        if isinstance(result, type):
            expect(
                _implements(result, plugin_type),
                "plugin factory should create plugin interface %s implementation",
                _type_name(plugin_type),
            )
        return
    if isinstance(annotation, type):
        expect(
            issubclass(annotation, collections.abc.Callable),
            "factory constructor should return factory, but returns %s",
            _type_name(annotation),
        )


class PluginConstructor:
    """Creates plugins by calling new_plugin([config])."""

    def __init__(self, plugin_type: Any, new_plugin: Callable[..., Any]) -> None:
        self.accepts_config, self.config_type = _check_plugin_callable(
            plugin_type, new_plugin, config_allowed=True
        )
        self.plugin_type = plugin_type
        self._new_plugin = new_plugin

    def new_plugin(self, maybe_conf: Sequence[Any] = ()) -> Any:
        """Create a plugin, passing the config if one is given."""
        return _checked(self.plugin_type, self._new_plugin(*maybe_conf))

    def new_factory(self, get_maybe_conf: GetMaybeConf | None = None) -> Callable[[], Any]:
        """Return a factory; the config is fetched anew for every plugin created."""

        def factory() -> Any:
            maybe_conf = get_maybe_conf() if get_maybe_conf is not None else ()
            return self.new_plugin(maybe_conf)

        return factory


class FactoryConstructor:
    """Creates plugins through a factory returned by new_factory([config])."""

    def __init__(self, plugin_type: Any, new_factory: Callable[..., Any]) -> None:
        expect(callable(new_factory), "factory constructor should be callable, but have: %r", new_factory)
        self.plugin_type = plugin_type
        self._new_factory = new_factory
        self.accepts_config = False
        self.config_type = None
        sig = _signature(new_factory)
        if sig is None:
            return
        required = _required_params(sig)
        expect(len(required) <= 1, "factory constructor should accept config or nothing")
        if required:
            self.accepts_config = True
            self.config_type = required[0][1]
        if sig.returns is not None and not isinstance(new_factory, type):
            _check_factory_annotation(plugin_type, sig.returns)

    def _call_new_factory(self, maybe_conf: Sequence[Any]) -> Callable[[], Any]:
        factory = self._new_factory(*maybe_conf)
        _check_plugin_callable(self.plugin_type, factory, config_allowed=False)
        return factory

    def new_plugin(self, maybe_conf: Sequence[Any] = ()) -> Any:
        """Create a factory with the given config and one plugin from it."""
        factory = self._call_new_factory(maybe_conf)
        return _checked(self.plugin_type, factory())

    def new_factory(self, get_maybe_conf: GetMaybeConf | None = None) -> Callable[[], Any]:
        """Return a factory; the config is fetched once, right now."""
        maybe_conf = get_maybe_conf() if get_maybe_conf is not None else ()
        factory = self._call_new_factory(maybe_conf)

        def checked_factory() -> Any:
            return _checked(self.plugin_type, factory())

        return checked_factory


def _returns_factory(constructor: Any) -> bool:
    if isinstance(constructor, type):
        return False
    sig = _signature(constructor)
    if sig is None:
        return False
    return sig.returns is not None and _is_callable_annotation(sig.returns)


def new_impl_constructor(
    plugin_type: Any, constructor: Callable[..., Any], is_factory: bool | None = None
) -> PluginConstructor | FactoryConstructor:
    """Wrap constructor; whether it returns a factory is read from its return annotation
    unless is_factory says so explicitly."""
    expect(callable(constructor), "plugin constructor should be callable, but have: %r", constructor)
    if is_factory is None:
        is_factory = _returns_factory(constructor)
    if is_factory:
        return FactoryConstructor(plugin_type, constructor)
    return PluginConstructor(plugin_type, constructor)


def new_plugin_constructor(plugin_type: Any, new_plugin: Callable[..., Any]) -> PluginConstructor:
    return PluginConstructor(plugin_type, new_plugin)


def new_factory_constructor(plugin_type: Any, new_factory: Callable[..., Any]) -> FactoryConstructor:
    return FactoryConstructor(plugin_type, new_factory)