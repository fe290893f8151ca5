"""Inject devices and mounts into containers from pod annotations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from nrikit.dump import container_name, dump

DEVICE_KEY = "devices.nri.io"
MOUNT_KEY = "mounts.nri.io"

_INT64 = (-(1 << 63), (1 << 63) - 1)
_UINT32 = (0, (1 << 32) - 1)

_log = logging.getLogger(__name__)


class AnnotationError(ValueError):
    """A device or mount annotation could not be parsed."""


def _field(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _lookup(item: Mapping, key: str) -> Any:
    """Find a field the way JSON decoding does: exact or case-insensitive."""
    found = None
    for k, v in item.items():
        if isinstance(k, str) and k.lower() == key.lower():
            found = v
    return found


def _as_str(item: Mapping, key: str) -> str:
    value = _lookup(item, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r}: expected a string, got {type(value).__name__}")
    return value


def _as_int(item: Mapping, key: str, bounds: tuple[int, int]) -> int:
    value = _lookup(item, key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r}: expected an integer, got {type(value).__name__}")
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"field {key!r}: value {value} out of range")
    return value


def _as_str_list(item: Mapping, key: str) -> list[str] | None:
    value = _lookup(item, key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"field {key!r}: expected a list of strings")
    return list(value)


def _item_map(item: Any) -> Mapping:
    if item is None:
        return {}
    if not isinstance(item, Mapping):
        raise ValueError(f"expected an object, got {type(item).__name__}")
    return item


@dataclass
class Device:
    """A device requested through an annotation."""

    path: str = ""
    type: str = ""
    major: int = 0
    minor: int = 0
    file_mode: int = 0
    uid: int = 0
    gid: int = 0

    @classmethod
    def _from_yaml(cls, item: Any) -> Device:
        item = _item_map(item)
        return cls(
            path=_as_str(item, "path"),
            type=_as_str(item, "type"),
            major=_as_int(item, "major", _INT64),
            minor=_as_int(item, "minor", _INT64),
            file_mode=_as_int(item, "file_mode", _UINT32),
            uid=_as_int(item, "uid", _UINT32),
            gid=_as_int(item, "gid", _UINT32),
        )

    def to_nri(self) -> dict[str, Any]:
        """Return the NRI form of the device; zero mode, uid and gid are left out."""
        out: dict[str, Any] = {
            "path": self.path,
            "type": self.type,
            "major": self.major,
            "minor": self.minor,
        }
        if self.file_mode:
            out["file_mode"] = self.file_mode
        if self.uid:
            out["uid"] = self.uid
        if self.gid:
            out["gid"] = self.gid
        return out


@dataclass
class Mount:
    """A mount requested through an annotation."""

    source: str = ""
    destination: str = ""
    type: str = ""
    options: list[str] | None = None

    @classmethod
    def _from_yaml(cls, item: Any) -> Mount:
        item = _item_map(item)
        return cls(
            source=_as_str(item, "source"),
            destination=_as_str(item, "destination"),
            type=_as_str(item, "type"),
            options=_as_str_list(item, "options"),
        )

    def to_nri(self) -> dict[str, Any]:
        """Return the NRI form of the mount."""
        return {
            "source": self.source,
            "destination": self.destination,
            "type": self.type,
            "options": list(self.options) if self.options is not None else None,
        }


@dataclass
class Adjustment:
    """Changes requested for a container being created."""

    devices: list[dict[str, Any]] = field(default_factory=list)
    mounts: list[dict[str, Any]] = field(default_factory=list)

    def add_device(self, device: dict[str, Any]) -> None:
        self.devices.append(device)

    def add_mount(self, mount: dict[str, Any]) -> None:
        self.mounts.append(mount)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.mounts:
            out["mounts"] = [dict(m) for m in self.mounts]
        if self.devices:
            out["linux"] = {"devices": [dict(d) for d in self.devices]}
        return out


def _effective(prefix: str, ctr: str, annotations: Mapping[str, str] | None) -> tuple[str, str] | None:
    annotations = annotations or {}
    for key in (f"{prefix}/container.{ctr}", f"{prefix}/pod", prefix):
        if key in annotations:
            return key, annotations[key]
    return None


def _parse(kind: str, prefix: str, ctr: str, annotations, build) -> list:
    found = _effective(prefix, ctr, annotations)
    if found is None:
        return []
    key, text = found
    try:
        data = yaml.safe_load(text)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError(f"expected a list, got {type(data).__name__}")
        return [build(item) for item in data]
    except (yaml.YAMLError, ValueError) as exc:
        raise AnnotationError(f'invalid {kind} annotation "{key}": {exc}') from exc


def parse_devices(ctr: str, annotations: Mapping[str, str] | None) -> list[Device]:
    """Parse the devices annotated for a container, most specific key first."""
    return _parse("device", DEVICE_KEY, ctr, annotations, Device._from_yaml)


def parse_mounts(ctr: str, annotations: Mapping[str, str] | None) -> list[Mount]:
    """Parse the mounts annotated for a container, most specific key first."""
    return _parse("mount", MOUNT_KEY, ctr, annotations, Mount._from_yaml)


class DeviceInjector:
    """Plugin that injects annotated devices and mounts into new containers."""

    def __init__(self, verbose: bool = False, logger: logging.Logger | None = None) -> None:
        self.verbose = verbose
        self.log = logger if logger is not None else _log

    def create_container(self, pod: Any, container: Any) -> Adjustment:
        """Build the adjustment for a container from its pod's annotations."""
        ctr_name = container_name(pod, container)
        if self.verbose:
            dump(self.log, "CreateContainer", "pod", pod, "container", container)

        adjust = Adjustment()
        name = _field(container, "name", "") or ""
        annotations = _field(pod, "annotations", None) or {}

        devices = parse_devices(name, annotations)
        if not devices:
            self.log.info("%s: no devices annotated...", ctr_name)
        else:
            if self.verbose:
                dump(self.log, ctr_name, "annotated devices", devices)
            for d in devices:
                adjust.add_device(d.to_nri())
                if not self.verbose:
                    self.log.info('%s: injected device "%s"...', ctr_name, d.path)

        mounts = parse_mounts(name, annotations)
        if not mounts:
            self.log.info("%s: no mounts annotated...", ctr_name)
        else:
            if self.verbose:
                dump(self.log, ctr_name, "annotated mounts", mounts)
            for m in mounts:
                adjust.add_mount(m.to_nri())
                if not self.verbose:
                    self.log.info(
                        '%s: injected mount "%s" -> "%s"...', ctr_name, m.source, m.destination
                    )

        if self.verbose:
            dump(self.log, ctr_name, "ContainerAdjustment", adjust)
        return adjust