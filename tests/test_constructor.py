from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

import pytest

from pandora.plugin.constructor import (
    ExpectationError,
    FactoryConstructor,
    PluginConstructor,
    expect,
    new_factory_constructor,
    new_impl_constructor,
    new_plugin_constructor,
)

INIT_VALUE = "ptest_INITIAL"
DEFAULT_VALUE = "ptest_DEFAULT_CONFIG"


class PTestCreateFailed(Exception):
    pass


class PTestConfigurationFailed(Exception):
    pass


class PTestPlugin(ABC):
    @abstractmethod
    def do_something(self): ...


class PTestMoreThanPlugin(PTestPlugin):
    @abstractmethod
    def do_something_else(self): ...


@dataclass
class PTestImpl(PTestMoreThanPlugin):
    value: str

    def do_something(self):
        pass

    def do_something_else(self):
        pass


@dataclass
class PTestConfig:
    value: str


def ptest_new() -> PTestPlugin:
    return ptest_new_impl()


def ptest_new_more_than() -> PTestMoreThanPlugin:
    return ptest_new_impl()


def ptest_new_impl() -> PTestImpl:
    return PTestImpl(INIT_VALUE)


def ptest_new_conf(c: PTestConfig) -> PTestPlugin:
    return PTestImpl(c.value)


def ptest_new_failing() -> PTestPlugin:
    raise PTestCreateFailed("test plugin create failed")


def ptest_new_factory() -> Callable[[], PTestPlugin]:
    return ptest_new


def ptest_new_factory_more_than() -> Callable[[], PTestMoreThanPlugin]:
    return ptest_new_more_than


def ptest_new_factory_impl() -> Callable[[], PTestImpl]:
    return ptest_new_impl


def ptest_new_factory_conf(c: PTestConfig) -> Callable[[], PTestPlugin]:
    return lambda: ptest_new_conf(c)


def ptest_new_factory_failing() -> Callable[[], PTestPlugin]:
    raise PTestCreateFailed("test plugin create failed")


def ptest_new_factory_factory_failing() -> Callable[[], PTestPlugin]:
    return ptest_new_failing


def ptest_default_conf() -> PTestConfig:
    return PTestConfig(DEFAULT_VALUE)


def conf_to_get_maybe(conf):
    return lambda: [conf]


def err_to_get_maybe():
    def get():
        raise PTestConfigurationFailed("test plugin configuration failed")

    return get


def returns_object() -> object:
    raise AssertionError("not called")


def two_configs(a: PTestConfig, b: PTestConfig) -> PTestPlugin:
    raise AssertionError("not called")


def keyword_only(*, conf: PTestConfig) -> PTestPlugin:
    raise AssertionError("not called")


def returns_error() -> ValueError:
    raise AssertionError("not called")


def two_configs_factory(a: PTestConfig, b: PTestConfig) -> Callable[[], PTestPlugin]:
    raise AssertionError("not called")


def factory_accepts_conf() -> Callable[[PTestConfig], PTestPlugin]:
    raise AssertionError("not called")


def factory_not_implements() -> Callable[[], object]:
    raise AssertionError("not called")


def factory_too_many_args() -> Callable[[PTestConfig, PTestConfig], PTestPlugin]:
    raise AssertionError("not called")


def test_expect_failure_message():
    with pytest.raises(ExpectationError, match="expectation failed: value 1 is bad"):
        expect(False, "value %s is bad", 1)


def test_expectation_error_is_type_error():
    with pytest.raises(TypeError):
        expect(False, "plain")


@pytest.mark.parametrize(
    "constructor",
    [ValueError("that is not constructor"), returns_object, two_configs, keyword_only],
    ids=["not func", "not implements", "too many args", "keyword only"],
)
def test_plugin_constructor_expectations_failed(constructor):
    with pytest.raises(ExpectationError, match="expectation failed"):
        new_plugin_constructor(PTestPlugin, constructor)


def test_plugin_constructor_new_plugin():
    plugin = new_plugin_constructor(PTestPlugin, ptest_new).new_plugin([])
    assert plugin.value == INIT_VALUE


def test_plugin_constructor_more_than_plugin():
    plugin = new_plugin_constructor(PTestPlugin, ptest_new_more_than).new_plugin([])
    assert plugin.value == INIT_VALUE


def test_plugin_constructor_config():
    plugin = new_plugin_constructor(PTestPlugin, ptest_new_conf).new_plugin([ptest_default_conf()])
    assert plugin.value == DEFAULT_VALUE


def test_plugin_constructor_failed():
    with pytest.raises(PTestCreateFailed):
        new_plugin_constructor(PTestPlugin, ptest_new_failing).new_plugin([])


def test_plugin_constructor_class_as_constructor():
    constructor = new_plugin_constructor(PTestPlugin, PTestImpl)
    assert constructor.accepts_config is True
    assert constructor.config_type is str
    assert constructor.new_plugin(["direct"]).value == "direct"


def test_plugin_constructor_config_introspection():
    with_conf = new_plugin_constructor(PTestPlugin, ptest_new_conf)
    without_conf = new_plugin_constructor(PTestPlugin, ptest_new)
    assert (with_conf.accepts_config, with_conf.config_type) == (True, PTestConfig)
    assert (without_conf.accepts_config, without_conf.config_type) == (False, None)


def test_plugin_constructor_runtime_result_not_implementing():
    constructor = new_plugin_constructor(PTestPlugin, lambda: object())
    with pytest.raises(TypeError, match="does not implement"):
        constructor.new_plugin([])


def test_plugin_new_factory_no_config():
    factory = new_plugin_constructor(PTestPlugin, ptest_new_impl).new_factory(None)
    first, second = factory(), factory()
    assert first.value == INIT_VALUE
    assert first is not second and second.value == INIT_VALUE


def test_plugin_new_factory_more_than():
    factory = new_plugin_constructor(PTestPlugin, ptest_new_more_than).new_factory()
    assert factory().value == INIT_VALUE


def test_plugin_new_factory_config_fetched_every_call():
    calls = []

    def get_maybe_conf():
        calls.append(1)
        return [ptest_default_conf()]

    factory = new_plugin_constructor(PTestPlugin, ptest_new_conf).new_factory(get_maybe_conf)
    assert calls == []
    assert factory().value == DEFAULT_VALUE
    assert factory().value == DEFAULT_VALUE
    assert len(calls) == 2


def test_plugin_new_factory_config_value():
    factory = new_plugin_constructor(PTestPlugin, ptest_new_conf).new_factory(
        conf_to_get_maybe(ptest_default_conf())
    )
    assert factory().value == DEFAULT_VALUE


def test_plugin_new_factory_get_config_failed():
    factory = new_plugin_constructor(PTestPlugin, ptest_new_conf).new_factory(err_to_get_maybe())
    with pytest.raises(PTestConfigurationFailed):
        factory()


def test_plugin_new_factory_create_failed():
    factory = new_plugin_constructor(PTestPlugin, ptest_new_failing).new_factory()
    with pytest.raises(PTestCreateFailed):
        factory()


@pytest.mark.parametrize(
    "constructor",
    [
        ValueError("that is not constructor"),
        returns_error,
        two_configs_factory,
        factory_accepts_conf,
        factory_not_implements,
        factory_too_many_args,
        keyword_only,
    ],
    ids=[
        "not func",
        "returned not func",
        "too many args",
        "factory accepts conf",
        "not implements",
        "factory too many args",
        "keyword only",
    ],
)
def test_factory_constructor_expectations_failed(constructor):
    with pytest.raises(ExpectationError, match="expectation failed"):
        new_factory_constructor(PTestPlugin, constructor)


@pytest.mark.parametrize(
    "constructor",
    [ptest_new_factory, ptest_new_factory_impl, ptest_new_factory_more_than],
    ids=["plain", "impl", "impl more than"],
)
def test_factory_constructor_new_plugin(constructor):
    plugin = new_factory_constructor(PTestPlugin, constructor).new_plugin([])
    assert plugin.value == INIT_VALUE


def test_factory_constructor_new_plugin_config():
    constructor = new_factory_constructor(PTestPlugin, ptest_new_factory_conf)
    assert constructor.accepts_config is True
    assert constructor.config_type is PTestConfig
    assert constructor.new_plugin([ptest_default_conf()]).value == DEFAULT_VALUE


def test_factory_constructor_new_plugin_failed():
    with pytest.raises(PTestCreateFailed):
        new_factory_constructor(PTestPlugin, ptest_new_factory_failing).new_plugin([])


def test_factory_constructor_new_plugin_factory_failed():
    with pytest.raises(PTestCreateFailed):
        new_factory_constructor(PTestPlugin, ptest_new_factory_factory_failing).new_plugin([])


def test_factory_constructor_returned_not_callable_at_runtime():
    constructor = new_factory_constructor(PTestPlugin, lambda: 42)
    with pytest.raises(ExpectationError, match="should be callable"):
        constructor.new_plugin([])


def test_factory_constructor_returned_factory_with_args_at_runtime():
    constructor = new_factory_constructor(PTestPlugin, lambda: ptest_new_conf)
    with pytest.raises(ExpectationError, match="shouldn't accept any arguments"):
        constructor.new_plugin([])


@pytest.mark.parametrize(
    "constructor",
    [ptest_new_factory, ptest_new_factory_impl, ptest_new_factory_more_than],
    ids=["plain", "impl", "more than"],
)
def test_factory_new_factory(constructor):
    factory = new_factory_constructor(PTestPlugin, constructor).new_factory(None)
    assert factory().value == INIT_VALUE
    assert factory().value == INIT_VALUE


def test_factory_new_factory_config_fetched_once():
    calls = []

    def get_maybe_conf():
        calls.append(1)
        return [ptest_default_conf()]

    factory = new_factory_constructor(PTestPlugin, ptest_new_factory_conf).new_factory(get_maybe_conf)
    assert len(calls) == 1
    assert factory().value == DEFAULT_VALUE
    assert factory().value == DEFAULT_VALUE
    assert len(calls) == 1


def test_factory_new_factory_get_config_failed():
    constructor = new_factory_constructor(PTestPlugin, ptest_new_factory_conf)
    with pytest.raises(PTestConfigurationFailed):
        constructor.new_factory(err_to_get_maybe())


def test_factory_new_factory_create_failed():
    constructor = new_factory_constructor(PTestPlugin, ptest_new_factory_failing)
    with pytest.raises(PTestCreateFailed):
        constructor.new_factory()


def test_factory_new_factory_plugin_create_failed():
    factory = new_factory_constructor(PTestPlugin, ptest_new_factory_factory_failing).new_factory()
    with pytest.raises(PTestCreateFailed):
        factory()


def test_impl_constructor_infers_factory_from_annotation():
    calls = []

    def get_maybe_conf():
        calls.append(1)
        return []

    factory_based = new_impl_constructor(PTestPlugin, ptest_new_factory)
    factory_based.new_factory(get_maybe_conf)
    # A factory constructor fetches the config at factory creation.
    assert calls == [1]

    plugin_based = new_impl_constructor(PTestPlugin, ptest_new)
    plugin_factory = plugin_based.new_factory(get_maybe_conf)
    # A plugin constructor fetches the config only when a plugin is made.
    assert calls == [1]
    assert plugin_factory().value == INIT_VALUE
    assert calls == [1, 1]

    class_based = new_impl_constructor(PTestPlugin, PTestImpl)
    assert class_based.new_plugin(["from class"]).value == "from class"
    assert class_based.accepts_config is True


def test_impl_constructor_explicit_factory_flag():
    constructor = new_impl_constructor(PTestPlugin, lambda: ptest_new, True)
    assert isinstance(constructor, FactoryConstructor)
    assert constructor.new_plugin([]).value == INIT_VALUE


def test_impl_constructor_explicit_plugin_flag():
    constructor = new_impl_constructor(PTestPlugin, lambda: PTestImpl("x"), False)
    assert isinstance(constructor, PluginConstructor)
    assert constructor.new_plugin([]).value == "x"


def test_impl_constructor_not_callable():
    with pytest.raises(ExpectationError, match="should be callable"):
        new_impl_constructor(PTestPlugin, "not a constructor")