"""Skeleton for running a one-shot plugin over stdin and stdout."""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from typing import IO, Protocol

from nrikit.types import Request, Result


class SkelError(Exception):
    """The request could not be read or the result could not be written."""


class Plugin(Protocol):
    """A plugin that modifies container resources."""

    name: str

    def invoke(self, request: Request) -> Result:
        """Handle one request and return its result."""
        ...


_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _encode(payload: object) -> str:
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _GO_ESCAPES.items():
        text = text.replace(char, escape)
    return text + "\n"


def _emit(result: Result | None, stdout: IO[str], what: str) -> None:
    try:
        payload = None if result is None else result.to_dict()
        stdout.write(_encode(payload))
        stdout.flush()
    except (OSError, TypeError, ValueError) as exc:
        raise SkelError(f"{what}: {exc}") from exc


def _read_request(stdin: IO[str]) -> Request:
    try:
        data, _ = json.JSONDecoder().raw_decode(stdin.read().lstrip())
    except json.JSONDecodeError as exc:
        raise SkelError(f"invalid request: {exc}") from exc
    try:
        return Request.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise SkelError(f"invalid request: {exc}") from exc


def run(
    plugin: Plugin,
    argv: Sequence[str] | None = None,
    stdin: IO[str] | None = None,
    stdout: IO[str] | None = None,
) -> None:
    """Read a request from stdin, dispatch on argv[1] and write the result."""
    argv = sys.argv if argv is None else argv
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout

    request = _read_request(stdin)
    if len(argv) < 2:
        raise SkelError("missing command argument")
    command = argv[1]

    if command == "invoke":
        try:
            result = plugin.invoke(request)
        except Exception as exc:  # the plugin's error is reported in the result
            result = request.new_result(plugin.name)
            result.error = str(exc)
        _emit(result, stdout, "unable to encode plugin error to stdout")
    else:
        result = request.new_result(plugin.name)
        result.error = f"invalid arg {command}"
        _emit(result, stdout, "unable to encode invalid parameter error to stdout")