"""Report how plugins between chained observer slots change pods and containers."""

from __future__ import annotations

import copy
import dataclasses
import difflib
import enum
import logging
import re
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from nrikit.dump import dump_lines

_log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _plain(obj: Any) -> Any:
    """Turn dataclasses, enums and objects with to_dict into plain data."""
    if isinstance(obj, enum.Enum):
        return _plain(obj.value)
    if isinstance(obj, type):
        return obj
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return _plain(to_dict())
    if dataclasses.is_dataclass(obj):
        return {f.name: _plain(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Mapping):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    return obj


def _lookup(data: Mapping, key: str) -> tuple[bool, Any]:
    found, value = False, None
    for k, v in data.items():
        if isinstance(k, str) and k.lower() == key.lower():
            found, value = True, v
    return found, value


@dataclass
class DifferConfig:
    """Settings of the differ: watched indices, log file, verbosity, YAML output."""

    indices: str = "0,99"
    log_file: str = ""
    verbose_level: int = 0
    yaml: bool = False

    def update_from_yaml(self, text: str) -> bool:
        """Overlay settings from YAML text; return True if the log file changed."""
        if not text:
            return False
        old_log_file = self.log_file
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"failed to parse provided configuration: {exc}") from exc
        if data is None:
            return False
        if not isinstance(data, Mapping):
            raise ValueError(
                "failed to parse provided configuration: "
                f"expected a mapping, got {type(data).__name__}"
            )

        updates: dict[str, Any] = {}
        for key, attr, kind in (
            ("indices", "indices", str),
            ("logFile", "log_file", str),
            ("verboseLevel", "verbose_level", int),
            ("yaml", "yaml", bool),
        ):
            present, value = _lookup(data, key)
            if not present or value is None:
                continue
            valid = isinstance(value, kind) and (kind is bool or not isinstance(value, bool))
            if not valid:
                raise ValueError(
                    f"failed to parse provided configuration: field {key!r}: "
                    f"expected {kind.__name__}, got {type(value).__name__}"
                )
            updates[attr] = value
        for attr, value in updates.items():
            setattr(self, attr, value)
        return self.log_file != old_log_file


@dataclass
class Change:
    """One difference between two values, located by its path."""

    type: str
    path: list[str]
    from_value: Any = None
    to_value: Any = None


def _diff(old: Any, new: Any, path: list[str], out: list[Change]) -> None:
    if isinstance(old, Mapping) and isinstance(new, Mapping):
        for key, value in old.items():
            sub = path + [str(key)]
            if key in new:
                _diff(value, new[key], sub, out)
            else:
                out.append(Change("delete", sub, value, None))
        for key, value in new.items():
            if key not in old:
                out.append(Change("create", path + [str(key)], None, value))
        return
    if isinstance(old, list) and isinstance(new, list):
        for pos, value in enumerate(old):
            sub = path + [str(pos)]
            if pos < len(new):
                _diff(value, new[pos], sub, out)
            else:
                out.append(Change("delete", sub, value, None))
        for pos in range(len(old), len(new)):
            out.append(Change("create", path + [str(pos)], None, new[pos]))
        return
    if old == new and type(old) is type(new):
        return
    if old is None:
        out.append(Change("create", path, None, new))
    elif new is None:
        out.append(Change("delete", path, old, None))
    else:
        out.append(Change("update", path, old, new))


def diff_values(old: Any, new: Any) -> list[Change]:
    """List the changes that turn old into new."""
    changes: list[Change] = []
    _diff(_plain(old), _plain(new), [], changes)
    return changes


def parse_indices(text: str) -> list[int]:
    """Parse a comma separated list of plugin indices; at least two are needed."""
    if text.count(",") == 0:
        raise ValueError("There must be at least two index given.")
    return [int(part) if _INT_RE.fullmatch(part) else 0 for part in text.split(",")]


@dataclass
class IndexSlot:
    """Links of one observer slot to its neighbours and the values it recorded."""

    prev_index: int = -1
    next_index: int = 0
    prev_values: deque = field(default_factory=deque)


def _go_fmt(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + " ".join(_go_fmt(v) for v in value) + "]"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "map[" + " ".join(f"{k}:{_go_fmt(v)}" for k, v in items) + "]"
    return str(value)


def _yaml_text(obj: Any) -> str:
    text = yaml.safe_dump(
        _plain(obj), default_flow_style=False, sort_keys=True, allow_unicode=True
    )
    if text.endswith("...\n"):
        text = text[: -len("...\n")]
    return text


class Differ:
    """Observer slots placed around other plugins that log what those plugins change."""

    def __init__(self, config: DifferConfig | None = None, logger: logging.Logger | None = None) -> None:
        self.config = config if config is not None else DifferConfig()
        self.log = logger if logger is not None else _log
        self.slots: dict[int, IndexSlot] = {}

        prev = -1
        for idx in parse_indices(self.config.indices):
            slot = self.slots.setdefault(idx, IndexSlot())
            slot.prev_index = prev
            slot.prev_values = deque()
            if prev >= 0 and prev in self.slots:
                self.slots[prev].next_index = idx
            prev = idx
        self.slots[prev].next_index = -1

    def _emit(self, lines: list[str]) -> list[str]:
        for line in lines:
            self.log.info("%s", line)
        return lines

    def _dump(self, idx: int, *args: Any) -> list[str]:
        return self._emit(dump_lines(*args, name=f"[{idx:02d}]"))

    def _save(self, idx: int, pod: Any, container: Any) -> None:
        self.slots[idx].prev_values.append(
            (copy.deepcopy(pod), copy.deepcopy(container))
        )

    def observe(self, idx: int, apifunc: str, pod: Any, container: Any = None) -> list[str]:
        """Record or compare the pod and container seen by the slot at idx.

        Returns the lines that were logged.
        """
        slot = self.slots[idx]
        lines: list[str] = []
        if slot.prev_index < 0:
            if self.config.verbose_level > 0:
                if container is not None:
                    lines += self._dump(idx, apifunc, "pod", pod, "container", container)
                else:
                    lines += self._dump(idx, apifunc, "pod", pod)
            self._save(idx, pod, container)
            return lines

        queue = self.slots[slot.prev_index].prev_values
        if not queue:
            raise LookupError(f"no value recorded by the plugin at index {slot.prev_index}")
        initial_pod, initial_container = queue.popleft()

        if pod is not None and initial_pod is not None:
            lines += self.report(idx, apifunc, "pod", initial_pod, pod)
        if container is not None and initial_container is not None:
            lines += self.report(idx, apifunc, "container", initial_container, container)

        if slot.next_index > 0:
            self._save(idx, pod, container)
        return lines

    def report(self, idx: int, apifunc: str, obj: str, old: Any, new: Any) -> list[str]:
        """Log the differences between old and new; return the logged lines."""
        if self.config.yaml:
            return self._report_yaml(idx, apifunc, obj, old, new)

        lines: list[str] = []
        verbose = self.config.verbose_level > 1
        if verbose:
            lines += self._emit([f"[{idx}] Original values for {obj}"])
            lines += self._dump(idx, apifunc, obj, old)

        changes = diff_values(old, new)
        if not changes:
            lines += self._emit([f"[{idx}] {apifunc}: {obj}: <no changes>"])
            return lines

        lines += self._emit([
            f"[{idx}] {apifunc}: {obj}: {c.type}: {_go_fmt(c.path)}: "
            f"From: {_go_fmt(c.from_value)} -> To: {_go_fmt(c.to_value)}"
            for c in changes
        ])

        if verbose:
            lines += self._emit([f"[{idx}] Values after changes for {obj}"])
            lines += self._dump(idx, apifunc, obj, new)
        return lines

    def _report_yaml(self, idx: int, apifunc: str, obj: str, old: Any, new: Any) -> list[str]:
        try:
            before = _yaml_text(old)
            after = _yaml_text(new)
        except (yaml.YAMLError, TypeError):
            return []
        if before == after:
            return self._emit([f"[{idx}] {apifunc}: {obj}: <no changes>"])
        diff = [
            line
            for line in difflib.ndiff(before.splitlines(), after.splitlines())
            if not line.startswith("? ")
        ]
        return self._emit([f"[{idx}] {apifunc}: {obj}: " + "\n".join(diff)])