import logging
from dataclasses import dataclass

import pytest

from nrikit.dump import container_name, dump, dump_lines
from nrikit.types import Result


@dataclass
class Named:
    name: str


def test_prefix_only_gives_no_lines():
    assert dump_lines("Shutdown") == []


def test_prefixed_lines():
    lines = dump_lines("RunPodSandbox", "pod", {"namespace": "ns", "name": "web"})
    assert lines == [
        "RunPodSandbox: pod:",
        "RunPodSandbox:    name: web",
        "RunPodSandbox:    namespace: ns",
    ]


def test_unprefixed_lines():
    assert dump_lines("pod", {"name": "web"}) == ["pod:", "  name: web"]


def test_named_lines():
    assert dump_lines("Sync", "pods", ["a"], name="[00]") == [
        "[00] Sync: pods:",
        "[00] Sync:    - a",
    ]
    assert dump_lines("pods", ["a"], name="[00]") == ["[00] pods:", "[00]  - a"]


def test_every_pair_gets_a_header():
    lines = dump_lines("Create", "pod", {"x": "1"}, "container", {"y": "2"})
    assert "Create: pod:" in lines
    assert "Create: container:" in lines
    assert lines.index("Create: pod:") < lines.index("Create: container:")


def test_none_renders_without_document_end():
    lines = dump_lines("p", "obj", None)
    assert lines == ["p: obj:", "p:    null"]


def test_objects_with_to_dict_use_their_json_names():
    lines = dump_lines("p", "result", Result(plugin="x", version="v"))
    assert "p:    plugin: x" in lines
    assert all("metadata" not in line for line in lines)


def test_dataclass_is_rendered():
    assert dump_lines("p", "obj", Named("web")) == ["p: obj:", "p:    name: web"]


def test_unrepresentable_object_reports_failure():
    lines = dump_lines("p", "obj", object())
    assert len(lines) == 1
    assert lines[0].startswith("p: obj: failed to dump object:")


def test_non_string_prefix_raises():
    with pytest.raises(TypeError):
        dump_lines(1, "tag", {})


def test_dump_logs_each_line(caplog):
    logger = logging.getLogger("nrikit.test.dump")
    with caplog.at_level(logging.INFO, logger="nrikit.test.dump"):
        dump(logger, "Create", "pod", {"a": "b", "c": ["d"]})
    messages = [r.getMessage() for r in caplog.records]
    assert messages == dump_lines("Create", "pod", {"a": "b", "c": ["d"]})
    assert all(r.levelno == logging.INFO for r in caplog.records)


def test_container_name_with_pod():
    assert container_name(Named("pod0"), Named("ctr0")) == "pod0/ctr0"
    assert container_name({"name": "pod0"}, {"name": "ctr0"}) == "pod0/ctr0"


def test_container_name_without_pod():
    assert container_name(None, Named("ctr0")) == "ctr0"