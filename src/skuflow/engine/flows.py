"""Catalogue of named server-side flows."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from skuflow.core.exceptions import ConfigurationError, UnknownFlowError
from skuflow.engine.registry import TaskRegistry
from skuflow.models.flow import FlowDefinition
from skuflow.models.workflow import InitialContext, WorkflowStage

logger = logging.getLogger(__name__)


class FlowCatalog:
    """Flow definitions keyed by name, built once at startup next to the task registry."""

    def __init__(self, flows: Iterable[FlowDefinition | Mapping[str, Any]] = ()) -> None:
        self._flows: dict[str, FlowDefinition] = {}
        for flow in flows:
            self.register(flow)

    def register(self, flow: FlowDefinition | Mapping[str, Any]) -> FlowDefinition:
        if not isinstance(flow, FlowDefinition):
            flow = FlowDefinition.model_validate(flow)
        if flow.name in self._flows:
            raise ConfigurationError(f"Flow {flow.name!r} is already registered")
        self._flows[flow.name] = flow
        logger.debug(f"Registered flow {flow.name}")
        return flow

    def get(self, name: str) -> FlowDefinition:
        try:
            return self._flows[name]
        except KeyError:
            raise UnknownFlowError(name) from None

    def build(self, name: str, initial_context: InitialContext) -> list[WorkflowStage]:
        """Expand flow ``name`` against the ``options`` mapping of the initial context."""
        flow = self.get(name)
        options = initial_context.task_values().get("options")
        if not isinstance(options, Mapping):
            options = {}
        stages = flow.resolve(options)
        logger.info(
            f"Flow {name} resolved to {len(stages)} stage(s): {', '.join(s.name for s in stages)}"
        )
        return stages

    def missing_tasks(self, registry: TaskRegistry) -> dict[str, list[str]]:
        """Per flow, the task names it uses that ``registry`` cannot serve."""
        missing = {}
        for name, flow in self._flows.items():
            absent = sorted(task for task in flow.task_names() if task not in registry)
            if absent:
                missing[name] = absent
        return missing

    def names(self) -> list[str]:
        return sorted(self._flows)

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "name": name,
                "description": self._flows[name].description,
                "tasks": sorted(self._flows[name].task_names()),
            }
            for name in self.names()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._flows

    def __len__(self) -> int:
        return len(self._flows)
