# pandora

Building blocks for a load generator: schedules that decide *when* each shot
is fired, a queue and a simple provider that hand *ammo* to shooters, and a
plugin registry that builds configured components by name.

The package uses only the standard library.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Schedules

A schedule hands out operation tokens. `next()` returns a pair
`(moment, ok)`: the moment the next operation should start, and whether a
token was given. Once a schedule is exhausted, `next()` returns its finish
moment with `False`. `start(start_at)` fixes the start time; a schedule that
is never started explicitly starts on its first `next()`. Starting a schedule
a second time raises `AlreadyStartedError`. `left()` reports how many tokens
remain, or `-1` when that is not known.

- `pandora.schedule.do_at`: `new_do_at_schedule(duration, n, do_at)` gives
  `n` tokens, the i'th at the start plus `do_at(i)`; `new_once(n)` gives `n`
  tokens all at the start moment. `DoAtSchedule`, `StartSync` and
  `AlreadyStartedError` live here too.
- `pandora.schedule.rate`: `new_const(ops, duration)` keeps a constant rate
  (a negative rate counts as zero); `new_line(from_, to, duration)` changes
  the rate linearly. A line whose rate changes needs a duration of at least
  one second, otherwise `ValueError` is raised.
- `pandora.schedule.unlimited`: `new_unlimited(duration)` returns the current
  time as a token, as often as asked, until the duration has passed. Its
  `left()` is `-1` until then and `0` afterwards.
- `pandora.schedule.composite`: `new_composite(*schedules)` runs schedules
  one after another, each starting where the previous one finished. With no
  schedules it is an empty schedule; a single schedule is returned as is.

Each constructor has a `*_conf` variant taking a config dataclass:
`OnceConfig(times)`, `ConstConfig(ops, duration)`,
`LineConfig(from_, to, duration)`, `UnlimitedConfig(duration)` and
`CompositeConf(nested)`. Durations are `datetime.timedelta` values.

```python
from datetime import datetime, timedelta, timezone

from pandora.schedule.composite import new_composite
from pandora.schedule.do_at import new_once
from pandora.schedule.rate import new_const

schedule = new_composite(new_const(1, timedelta(seconds=2)), new_once(2))
print(schedule.left())  # 4
schedule.start(datetime.now(timezone.utc))
moment, ok = schedule.next()
```

## Ammo queue and number provider

`pandora.provider.queue` holds:

- `AmmoQueue(new_ammo, conf)`: a bounded queue of ready ammo, sized by
  `AmmoQueueConfig.ammo_queue_size` (see `default_ammo_queue_config()` and
  `DEFAULT_AMMO_QUEUE_SIZE`). A producer takes fresh or reused ammo with
  `get_input()`, queues it with `put(ammo, ctx)` (which waits for room and
  returns `False` if the context is cancelled first) and calls `close()` when
  done. Shooters take ammo with `acquire()`, which returns `(ammo, True)`, or
  `(None, False)` once the queue is closed and drained, and give it back with
  `release(ammo)` for reuse.
- `new_num(limit)` / `new_num_conf(NumConfig(limit))`: a `NumProvider` that
  hands out 0, 1, 2, … (without end when `limit` is zero or less). Its
  `run(ctx, deps)` blocks until every number has been taken or the context is
  cancelled.

```python
import threading

from pandora.errutil import Context
from pandora.provider.queue import new_num

provider = new_num(3)
threading.Thread(target=provider.run, args=(Context(),)).start()
print([provider.acquire() for _ in range(4)])
# [(0, True), (1, True), (2, True), (None, False)]
```

## Plugin registry

`pandora.plugin.registry.Registry` maps a plugin type (a class that
implementations subclass) and a name to a constructor and an optional
default config factory. A constructor takes nothing or one config argument
annotated with a config class; without a default config factory it gets a
fresh instance of that class. A `fill_conf` callable, if given, is applied to
the config before the constructor is called.

```python
from dataclasses import dataclass

from pandora.plugin.registry import Registry, factory_type


class Greeter:
    pass


@dataclass
class GreeterConfig:
    greeting: str = "hello"


class SimpleGreeter(Greeter):
    def __init__(self, conf):
        self.greeting = conf.greeting


def new_greeter(conf: GreeterConfig) -> Greeter:
    return SimpleGreeter(conf)


registry = Registry()
registry.register(Greeter, "simple", new_greeter)
greeter = registry.new(Greeter, "simple", lambda conf: setattr(conf, "greeting", "hi"))
make_greeter = registry.new_factory(factory_type(Greeter), "simple")
```

`new_factory` takes a factory type written `Callable[[], PluginType]`
(`factory_type(plugin_type)` builds one) and returns a function that creates
a plugin on every call. A constructor whose return annotation is a
`Callable` is treated as a factory constructor: it returns a function that
creates the plugins. `lookup`, `lookup_factory`, `is_factory_type` and
`factory_plugin_type` answer questions about types. Module-level `register`,
`lookup`, `lookup_factory`, `new` and `new_factory` use the registry returned
by `default_registry()`, which `set_default_registry()` replaces.

Unknown types or names raise `PluginNotFoundError`. Registering a name twice
or a constructor that does not fit raises `ExpectationError`.
`pandora.plugin.constructor` holds the lower-level `PluginConstructor` and
`FactoryConstructor`.

## Utilities

- `pandora.errutil`: `Context`, a cancellation signal (`cancel()`, `done()`,
  `error()`, `wait(timeout)`); `join(err1, err2)` combines errors into an
  exception group; `cause(err)` follows `__cause__`;
  `is_not_ctx_error(ctx, err)` tells real errors from cancellation.
- `pandora.ioutil2`: `new_multi_pass_reader(reader, passes)` replays a
  seekable stream several times (forever when `passes` is zero or less);
  `new_callback_writer(writer, on_write)`; `NopCloser`.
- `pandora.monitoring`: thread-safe `Counter` values; `new_counter(name)`
  publishes one under a name (a name may be used once) and `published(name)`
  looks it up.
- `pandora.netutil`: `TCPDialer`, `SimpleDNSCache`,
  `new_dns_caching_dialer(dialer, cache)` that remembers the address a host
  name first connected to, `lookup_reachable(addr)` and
  `warm_dns_cache(cache, addr)`.

## What it does not do

The package has no command line and no shooters of its own. It does not read
ammo from files or other data sources, and has no JSON ammo decoding: ammo
must be produced by your own code and put into an `AmmoQueue`, or taken from
the number provider.