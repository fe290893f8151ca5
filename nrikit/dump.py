"""Logging of objects as YAML, with a prefix and per-object tags."""

from __future__ import annotations

import dataclasses
import enum
import logging
from collections.abc import Mapping
from typing import Any

import yaml


def _plain(obj: Any) -> Any:
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


def _marshal(obj: Any) -> str:
    text = yaml.safe_dump(
        _plain(obj), default_flow_style=False, sort_keys=True, allow_unicode=True
    )
    if text.endswith("...\n"):
        text = text[: -len("...\n")]
    return text


def dump_lines(*args: Any, name: str = "") -> list[str]:
    """Render tag/object pairs as log lines.

    With an odd number of arguments the first one is a prefix for every line.
    A non-empty name is put in front of every successfully rendered line.
    """
    prefix = ""
    items = args
    if len(args) % 2 == 1:
        if not isinstance(args[0], str):
            raise TypeError("dump prefix must be a string")
        prefix, items = args[0], args[1:]

    lines: list[str] = []
    for tag, obj in zip(items[::2], items[1::2]):
        try:
            msg = _marshal(obj)
        except (yaml.YAMLError, TypeError) as exc:
            lines.append(f"{prefix}: {tag}: failed to dump object: {exc}")
            continue
        body = msg.strip().split("\n")
        if prefix:
            head = f"{name} {prefix}" if name else prefix
            lines.append(f"{head}: {tag}:")
            lines.extend(f"{head}:    {line}" for line in body)
        elif name:
            lines.append(f"{name} {tag}:")
            lines.extend(f"{name}  {line}" for line in body)
        else:
            lines.append(f"{tag}:")
            lines.extend(f"  {line}" for line in body)
    return lines


def dump(logger: logging.Logger, *args: Any, name: str = "") -> None:
    """Log tag/object pairs at info level, one line per message."""
    for line in dump_lines(*args, name=name):
        logger.info("%s", line)


def _name_of(obj: Any) -> str:
    if isinstance(obj, Mapping):
        return obj.get("name", "")
    return getattr(obj, "name", "")


def container_name(pod: Any, container: Any) -> str:
    """Container name for log messages, qualified by the pod name if known."""
    if pod is not None:
        return f"{_name_of(pod)}/{_name_of(container)}"
    return _name_of(container)