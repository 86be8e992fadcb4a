"""Named flow templates that expand into workflow stages."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from skuflow.core.exceptions import ConfigurationError
from skuflow.core.types import INITIAL_SOURCE
from skuflow.models.workflow import TaskRef, WorkflowStage


class FlowStep(BaseModel):
    """One task of a flow stage, optionally switched on by context options."""

    model_config = ConfigDict(populate_by_name=True)

    task: str
    source: str = INITIAL_SOURCE
    when: list[str] = Field(default_factory=list)  # option keys that must all be truthy
    context_overrides: dict[str, Any] = Field(default_factory=dict, alias="contextOverrides")

    def selected(self, options: Mapping[str, Any]) -> bool:
        return all(options.get(key) for key in self.when)


class FlowStage(BaseModel):
    name: str
    steps: list[FlowStep] = Field(min_length=1)


class FlowDefinition(BaseModel):
    """A server-side workflow a client starts by name.

    ``resolve`` keeps the steps whose options are set, drops stages left
    empty, and refuses selections where a kept step is gated on a task that
    was switched off.
    """

    name: str
    description: str = ""
    stages: list[FlowStage] = Field(min_length=1)

    def task_names(self) -> set[str]:
        return {step.task for stage in self.stages for step in stage.steps}

    def resolve(self, options: Mapping[str, Any]) -> list[WorkflowStage]:
        resolved: list[WorkflowStage] = []
        scheduled: set[str] = set()
        for stage in self.stages:
            refs = []
            for step in stage.steps:
                if not step.selected(options):
                    continue
                if step.source != INITIAL_SOURCE and step.source not in scheduled:
                    raise ConfigurationError(
                        f"Flow {self.name}: step {step.task} depends on {step.source}, "
                        f"which the selected options leave out"
                    )
                refs.append(TaskRef(
                    name=step.task, source=step.source, context_overrides=step.context_overrides,
                ))
            if refs:
                resolved.append(WorkflowStage(name=stage.name, tasks=refs))
                scheduled.update(ref.name for ref in refs)

        if not resolved:
            raise ConfigurationError(f"Flow {self.name}: the selected options enable no steps")
        return resolved
