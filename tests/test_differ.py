import logging

import pytest

from nrikit.differ import (
    Change,
    Differ,
    DifferConfig,
    IndexSlot,
    diff_values,
    parse_indices,
)


def _differ(indices="0,99", **kwargs):
    return Differ(DifferConfig(indices=indices, **kwargs), logging.getLogger("test-differ"))


def test_parse_indices_default():
    assert parse_indices("0,99") == [0, 99]


def test_parse_indices_many():
    assert parse_indices("45,50,80") == [45, 50, 80]


def test_parse_indices_requires_two():
    with pytest.raises(ValueError, match="at least two"):
        parse_indices("5")


def test_parse_indices_invalid_becomes_zero():
    assert parse_indices("x,7") == [0, 7]


def test_config_defaults():
    cfg = DifferConfig()
    assert cfg.indices == "0,99"
    assert cfg.verbose_level == 0
    assert cfg.yaml is False


def test_config_update_from_yaml():
    cfg = DifferConfig()
    changed = cfg.update_from_yaml("verboseLevel: 2\nyaml: true\n")
    assert changed is False
    assert cfg.verbose_level == 2
    assert cfg.yaml is True
    assert cfg.indices == "0,99"


def test_config_log_file_change_reported():
    cfg = DifferConfig()
    assert cfg.update_from_yaml("logFile: /tmp/differ.log") is True
    assert cfg.log_file == "/tmp/differ.log"
    assert cfg.update_from_yaml("logFile: /tmp/differ.log") is False


def test_config_empty_text_keeps_values():
    cfg = DifferConfig(verbose_level=3)
    assert cfg.update_from_yaml("") is False
    assert cfg.verbose_level == 3


@pytest.mark.parametrize("text", ["[1, 2]", "verboseLevel: high", "a: [b"])
def test_config_invalid(text):
    cfg = DifferConfig()
    with pytest.raises(ValueError, match="failed to parse provided configuration"):
        cfg.update_from_yaml(text)
    assert cfg.verbose_level == 0


def test_diff_equal_values():
    value = {"name": "a", "args": ["x"], "labels": {"k": "v"}}
    assert diff_values(value, dict(value)) == []


def test_diff_update():
    assert diff_values({"name": "a"}, {"name": "b"}) == [Change("update", ["name"], "a", "b")]


def test_diff_create_and_delete():
    changes = diff_values({"old": 1}, {"new": 2})
    assert Change("delete", ["old"], 1, None) in changes
    assert Change("create", ["new"], None, 2) in changes
    assert len(changes) == 2


def test_diff_nested_and_list_paths():
    old = {"linux": {"args": ["a"]}}
    new = {"linux": {"args": ["a", "b"]}}
    assert diff_values(old, new) == [Change("create", ["linux", "args", "1"], None, "b")]


def test_slot_links():
    d = _differ("0,50,99")
    assert d.slots[0] == IndexSlot(prev_index=-1, next_index=50)
    assert d.slots[50].prev_index == 0
    assert d.slots[50].next_index == 99
    assert d.slots[99].prev_index == 50
    assert d.slots[99].next_index == -1


def test_first_slot_records_value():
    d = _differ()
    lines = d.observe(0, "RunPodSandbox", {"name": "a"})
    assert lines == []
    assert list(d.slots[0].prev_values) == [({"name": "a"}, None)]


def test_change_reported_by_last_slot():
    d = _differ()
    d.observe(0, "RunPodSandbox", {"name": "a"})
    lines = d.observe(99, "RunPodSandbox", {"name": "b"})
    assert lines == ["[99] RunPodSandbox: pod: update: [name]: From: a -> To: b"]
    assert len(d.slots[0].prev_values) == 0
    assert len(d.slots[99].prev_values) == 0


def test_recorded_value_is_a_snapshot():
    d = _differ()
    pod = {"name": "a"}
    d.observe(0, "RunPodSandbox", pod)
    pod["name"] = "b"
    lines = d.observe(99, "RunPodSandbox", pod)
    assert lines == ["[99] RunPodSandbox: pod: update: [name]: From: a -> To: b"]


def test_no_changes():
    d = _differ()
    d.observe(0, "CreateContainer", {"name": "p"}, {"name": "c"})
    lines = d.observe(99, "CreateContainer", {"name": "p"}, {"name": "c"})
    assert lines == [
        "[99] CreateContainer: pod: <no changes>",
        "[99] CreateContainer: container: <no changes>",
    ]


def test_middle_slot_forwards_value():
    d = _differ("0,50,99")
    d.observe(0, "CreateContainer", {"name": "p"}, {"name": "c"})
    d.observe(50, "CreateContainer", {"name": "p"}, {"name": "c2"})
    assert list(d.slots[50].prev_values) == [({"name": "p"}, {"name": "c2"})]
    lines = d.observe(99, "CreateContainer", {"name": "p"}, {"name": "c3"})
    assert "[99] CreateContainer: container: update: [name]: From: c2 -> To: c3" in lines


def test_missing_recorded_value():
    d = _differ()
    with pytest.raises(LookupError):
        d.observe(99, "RunPodSandbox", {"name": "a"})


def test_verbose_first_slot_dumps():
    d = _differ(verbose_level=1)
    lines = d.observe(0, "RunPodSandbox", {"name": "a"})
    assert lines[0] == "[00] RunPodSandbox: pod:"
    assert any(line.endswith("name: a") for line in lines)


def test_report_verbose_includes_values():
    d = _differ(verbose_level=2)
    lines = d.report(99, "RunPodSandbox", "pod", {"name": "a"}, {"name": "b"})
    assert lines[0] == "[99] Original values for pod"
    assert "[99] Values after changes for pod" in lines
    assert "[99] RunPodSandbox: pod: update: [name]: From: a -> To: b" in lines


def test_report_yaml_mode():
    d = _differ(yaml=True)
    lines = d.report(99, "RunPodSandbox", "pod", {"name": "a"}, {"name": "b"})
    assert len(lines) == 1
    assert lines[0].startswith("[99] RunPodSandbox: pod: ")
    assert "- name: a" in lines[0]
    assert "+ name: b" in lines[0]


def test_report_yaml_no_changes():
    d = _differ(yaml=True)
    lines = d.report(99, "RunPodSandbox", "pod", {"name": "a"}, {"name": "a"})
    assert lines == ["[99] RunPodSandbox: pod: <no changes>"]