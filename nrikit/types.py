"""Request, result and configuration types exchanged with NRI plugins."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class PluginError(Exception):
    """Error reported by a plugin through the error field of its result."""


class State(str, enum.Enum):
    """Lifecycle action a request asks the plugin to perform."""

    CREATE = "create"
    DELETE = "delete"
    UPDATE = "update"
    PAUSE = "pause"
    RESUME = "resume"

    def __str__(self) -> str:
        return self.value


def _object(data: Any, what: str) -> Mapping:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"{what}: expected a JSON object, got {type(data).__name__}")
    return data


def _str(data: Mapping, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field {key!r}: expected a string, got {type(value).__name__}")
    return value


def _int(data: Mapping, key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"field {key!r}: expected an integer, got {type(value).__name__}")
    return value


def _str_map(data: Mapping, key: str) -> dict[str, str]:
    value = _object(data.get(key), f"field {key!r}")
    result = {}
    for k, v in value.items():
        if not isinstance(v, str):
            raise TypeError(f"field {key!r}: value of {k!r} is not a string")
        result[str(k)] = v
    return result


def _list(data: Mapping, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"field {key!r}: expected a list, got {type(value).__name__}")
    return value


def _state(value: str) -> State | str:
    try:
        return State(value)
    except ValueError:
        return value


@dataclass
class PluginConf:
    """A plugin entry of the global configuration: its type and raw config."""

    type: str = ""
    conf: Any = None

    @classmethod
    def _from_dict(cls, data: Any) -> PluginConf:
        data = _object(data, "plugin")
        return cls(type=_str(data, "type"), conf=data.get("conf"))


@dataclass
class ConfigList:
    """Global NRI configuration, normally read from /etc/nri/conf.json."""

    version: str = ""
    plugins: list[PluginConf] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ConfigList:
        data = _object(data, "config list")
        return cls(
            version=_str(data, "version"),
            plugins=[PluginConf._from_dict(p) for p in _list(data, "plugins")],
        )


@dataclass
class Spec:
    """Parts of the OCI runtime spec of the container being processed."""

    resources: Any = None
    namespaces: dict[str, str] = field(default_factory=dict)
    cgroups_path: str = ""
    annotations: dict[str, str] = field(default_factory=dict)

    @classmethod
    def _from_dict(cls, data: Any) -> Spec:
        data = _object(data, "spec")
        return cls(
            resources=data.get("resources"),
            namespaces=_str_map(data, "namespaces"),
            cgroups_path=_str(data, "cgroupsPath"),
            annotations=_str_map(data, "annotations"),
        )


@dataclass
class Result:
    """Outcome of a plugin invocation."""

    plugin: str = ""
    version: str = ""
    error: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def _from_dict(cls, data: Any) -> Result:
        data = _object(data, "result")
        return cls(
            plugin=_str(data, "plugin"),
            version=_str(data, "version"),
            error=_str(data, "error"),
            metadata=_str_map(data, "metadata"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; empty metadata is left out."""
        out: dict[str, Any] = {
            "plugin": self.plugin,
            "version": self.version,
            "error": self.error,
        }
        if self.metadata:
            out["metadata"] = dict(sorted(self.metadata.items()))
        return out

    def raise_for_error(self) -> None:
        """Raise PluginError if the result carries an error message."""
        if self.error:
            raise PluginError(self.error)


@dataclass
class Request:
    """A plugin invocation request."""

    version: str = ""
    state: State | str = ""
    id: str = ""
    sandbox_id: str = ""
    pid: int = 0
    spec: Spec | None = None
    labels: dict[str, str] = field(default_factory=dict)
    results: list[Result] = field(default_factory=list)
    conf: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> Request:
        data = _object(data, "request")
        spec = data.get("spec")
        return cls(
            version=_str(data, "version"),
            state=_state(_str(data, "state")),
            id=_str(data, "id"),
            sandbox_id=_str(data, "sandboxID"),
            pid=_int(data, "pid"),
            spec=None if spec is None else Spec._from_dict(spec),
            labels=_str_map(data, "labels"),
            results=[Result._from_dict(r) for r in _list(data, "results")],
            conf=data.get("conf"),
        )

    def is_sandbox(self) -> bool:
        """True if the request is for a sandbox."""
        return self.id == self.sandbox_id

    def new_result(self, plugin: str) -> Result:
        """Create an empty result for this request."""
        return Result(plugin=plugin, version=self.version, metadata={})