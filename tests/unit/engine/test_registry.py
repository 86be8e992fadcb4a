"""Tests for TaskRegistry validation."""

from __future__ import annotations

import pytest

from skuflow.core.exceptions import ConfigurationError, UnknownTaskError
from skuflow.engine.registry import TaskRegistry
from skuflow.models.workflow import WorkflowStage
from tests.fakes import ScriptedTask


def test_register_and_lookup():
    task = ScriptedTask("lookup")
    registry = TaskRegistry([task])
    assert registry.get("lookup") is task
    assert "lookup" in registry
    assert registry.names() == ["lookup"]


def test_duplicate_names_rejected():
    registry = TaskRegistry([ScriptedTask("a")])
    with pytest.raises(ConfigurationError):
        registry.register(ScriptedTask("a"))


def test_objects_without_execute_rejected():
    class NotATask:
        name = "broken"

    with pytest.raises(ConfigurationError):
        TaskRegistry([NotATask()])


def test_get_unknown_raises():
    with pytest.raises(UnknownTaskError):
        TaskRegistry().get("nope")


def test_validate_reports_every_missing_name():
    registry = TaskRegistry([ScriptedTask("a")])
    stages = [
        WorkflowStage.model_validate({"name": "s1", "tasks": [{"name": "a"}, {"name": "b"}]}),
        WorkflowStage.model_validate({"name": "s2", "tasks": [{"name": "c", "source": "a"}]}),
    ]
    with pytest.raises(UnknownTaskError) as exc_info:
        registry.validate(stages)
    assert exc_info.value.names == ["b", "c"]
    assert "b, c" in str(exc_info.value)
