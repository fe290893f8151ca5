# nrikit

Building blocks for writing plugins that adjust containers as a container
runtime creates, starts, updates and removes them.

The package has five modules:

- `nrikit.types` – the request and result documents exchanged with a plugin
  that is run once per lifecycle event.
- `nrikit.skel` – a runner that reads one request from standard input, hands it
  to a plugin and writes the result to standard output.
- `nrikit.dump` – helpers that render pods, containers and other objects as
  YAML log lines.
- `nrikit.device_injector` – works out the devices and mounts to add to a
  container from its pod's annotations.
- `nrikit.differ` – observes the same event at several plugin indices and logs
  what changed between them.

It needs Python 3.10 or newer and depends only on PyYAML.

## Requests and results

`Request.from_dict` builds a request from its decoded JSON form. A request
carries the plugin configuration (`conf`), a `version`, a `state`, the
container `id` and `sandbox_id` (JSON key `sandboxID`), the `pid`, an optional
`Spec`, the sandbox `labels` and the `results` of plugins that ran earlier.
Known states are turned into the `State` enum (`create`, `delete`, `update`,
`pause`, `resume`); any other value is kept as a plain string. A field of the
wrong JSON type raises `TypeError`.

```python
from nrikit.types import PluginError, Request

request = Request.from_dict({
    "version": "0.1",
    "state": "create",
    "id": "c1",
    "sandboxID": "c1",
    "spec": {"resources": {}},
})

request.is_sandbox()            # True: the ID and the sandbox ID match
result = request.new_result("my-plugin")
result.to_dict()                # {"plugin": "my-plugin", "version": "0.1", "error": ""}

result.error = "something went wrong"
try:
    result.raise_for_error()    # raises PluginError when the result carries an error
except PluginError as exc:
    print(exc)
```

`Result.to_dict` leaves out the metadata when it is empty and sorts it by key
otherwise.

`ConfigList.from_dict` reads the global plugin list: a `version` and a list of
`PluginConf` entries, each with a plugin `type` and its raw `conf`.

## Running a plugin

A plugin for the runner is any object with a `name` attribute and an
`invoke(request)` method returning a `Result` (see the `nrikit.skel.Plugin`
protocol).

`nrikit.skel.run(plugin, argv=None, stdin=None, stdout=None)` defaults to
`sys.argv`, `sys.stdin` and `sys.stdout`. It first decodes one JSON request
from `stdin`, then looks at `argv[1]`:

- `invoke`: the plugin is invoked and its result is written to `stdout` as one
  line of compact JSON. If the plugin raises, a fresh result from
  `request.new_result(plugin.name)` carrying the exception message as its
  error is written instead.
- anything else: a result with the error `invalid arg <value>` is written.

A request that cannot be decoded, a missing `argv[1]`, or a result that cannot
be written raises `SkelError`.

```python
import sys
from nrikit.skel import run
from nrikit.types import Request, Result

class Echo:
    name = "echo"

    def invoke(self, request: Request) -> Result:
        result = request.new_result(self.name)
        result.metadata["seen"] = request.id
        return result

if __name__ == "__main__":
    run(Echo())
```

## Dumping objects to a log

`dump_lines(*args, name="")` turns an optional prefix followed by tag/object
pairs into log lines, each object rendered as YAML with sorted keys.
Dataclasses, enums and objects with a `to_dict()` method are converted to
plain data first. With an odd number of arguments the first one is the prefix
and must be a string. A non-empty `name` is put in front of each line.

```python
from nrikit.dump import dump_lines

dump_lines("CreateContainer", "pod", {"name": "web"})
# ['CreateContainer: pod:', 'CreateContainer:    name: web']
```

`dump(logger, *args, name="")` writes those lines to a `logging.Logger` at
info level. `container_name(pod, container)` gives the `pod/container` label
used in log messages, or just the container name when the pod is `None`; pods
and containers may be mappings or objects with a `name` attribute.

## Injecting devices and mounts

`DeviceInjector(verbose=False, logger=None).create_container(pod, container)`
looks through the pod's annotations and returns an `Adjustment` listing the
devices and mounts to add. For each kind the most specific annotation wins:

| devices                           | mounts                           |
|-----------------------------------|----------------------------------|
| `devices.nri.io/container.<name>` | `mounts.nri.io/container.<name>` |
| `devices.nri.io/pod`              | `mounts.nri.io/pod`              |
| `devices.nri.io`                  | `mounts.nri.io`                  |

Annotation values are YAML lists:

```yaml
devices.nri.io/container.app: |
  - path: /dev/nri-null
    type: c
    major: 1
    minor: 3
    file_mode: 438
mounts.nri.io/pod: |
  - source: /srv/shared
    destination: /shared
    type: bind
    options: [bind, ro]
```

Field names are matched without regard to case. `major` and `minor` must fit
in a signed 64-bit integer; `file_mode`, `uid` and `gid` in an unsigned 32-bit
one.

`parse_devices(ctr, annotations)` and `parse_mounts(ctr, annotations)` do the
lookup on their own and return lists of `Device` and `Mount` (empty when no
annotation applies). An annotation that is not valid YAML of that shape raises
`AnnotationError`, naming the offending key. `Device.to_nri()` and
`Mount.to_nri()` give the dictionaries placed in the adjustment; a device's
file mode, uid and gid are left out when they are zero.
`Adjustment.to_dict()` returns `{"mounts": [...], "linux": {"devices": [...]}}`,
omitting whichever part is empty.

Each injected device and mount is logged at info level; with `verbose=True`
the pod, container, parsed annotations and the final adjustment are dumped as
YAML instead.

## Watching what plugins change

`parse_indices(text)` reads a comma separated list such as `"0,99"` or
`"45,50,80"`; text without a comma raises `ValueError`, and parts that are not
integers count as `0`.

A `Differ(config=None, logger=None)` keeps one `IndexSlot` per index of
`config.indices`, chained in the order given.

`Differ.observe(idx, apifunc, pod, container=None)` handles the pod and
container seen at index `idx` and returns the lines it logged. At the first
index the values are copied and stored; at each later index the values stored
by the previous index are taken out and compared with what arrived, the
differences are reported, and the new values are stored for the next index if
there is one. Observing at a later index with nothing stored by the previous
one raises `LookupError`.

`diff_values(old, new)` returns the `Change` entries (`create`, `update` or
`delete`, with a path and the old and new values) that turn one value into
another. `Differ.report(idx, apifunc, obj, old, new)` logs one line per change,
or `<no changes>` when the values match, and returns the lines. With
`config.yaml` set, the two values are rendered as YAML and a line diff is
logged instead.

`DifferConfig` holds `indices` (default `"0,99"`), `log_file`,
`verbose_level` (0 to 3) and `yaml`. `update_from_yaml(text)` applies the
YAML keys `indices`, `logFile`, `verboseLevel` and `yaml` on top of the
current settings, raises `ValueError` on malformed input, and returns `True`
when the log file setting changed. Higher verbosity adds YAML dumps of the
first values seen (level 1 and up) and of the values before and after each
change (level 2 and up).

## What the package does not do

The package contains the plugin logic only. It does not connect to a container
runtime, register plugins, or deliver lifecycle events: the handlers above are
called by your own code. It installs no command-line programs, and
`DifferConfig.log_file` is only recorded, not opened; where log output goes is
up to the `logging.Logger` you pass in.