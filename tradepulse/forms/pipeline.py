"""Ordered pipeline of fallible side effects behind a form submission.

Steps run one after another. The first failing step stops the run and
its error becomes the submission's error; later steps are not attempted.
Steps that already completed are NOT rolled back: the collaborators are
not transactional and there is no compensation mechanism, so a partial
outcome (e.g. avatar uploaded, profile row not updated) is possible and
reported through ``completed_steps`` / ``failed_step``.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tradepulse.api.middleware.error_handler import (
    UNEXPECTED_ERROR_MESSAGE,
    APIError,
    ValidationError,
)
from tradepulse.schemas.form import SubmissionResult

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """State threaded through the steps of one run.

    ``draft`` is a snapshot taken when the submission started. Each step's
    return value is stored in ``outputs`` under the step name. A step that
    produces the confirmed record stores it in ``record``.
    """

    draft: Mapping[str, Any]
    outputs: dict[str, Any] = field(default_factory=dict)
    record: dict[str, Any] | None = None


StepAction = Callable[[PipelineContext], Awaitable[Any]]
StepCondition = Callable[[PipelineContext], bool]


@dataclass(frozen=True)
class PipelineStep:
    name: str
    action: StepAction
    when: StepCondition | None = None

    def applies(self, ctx: PipelineContext) -> bool:
        return self.when is None or self.when(ctx)


class ActionPipeline:
    """Runs PipelineSteps in order and aggregates a SubmissionResult."""

    def __init__(self, steps: Iterable[PipelineStep], name: str = "submission") -> None:
        self.steps = tuple(steps)
        self.name = name

    async def run(self, draft: Mapping[str, Any]) -> SubmissionResult:
        ctx = PipelineContext(draft=draft)
        completed: list[str] = []

        for step in self.steps:
            if not step.applies(ctx):
                logger.debug("%s: skipping step %s", self.name, step.name)
                continue

            try:
                ctx.outputs[step.name] = await step.action(ctx)
            except ValidationError as e:
                logger.info("%s: step %s rejected input: %s", self.name, step.name, e.message)
                return SubmissionResult(
                    success=False,
                    error_message=e.message,
                    field_errors=e.field_errors,
                    completed_steps=completed,
                    failed_step=step.name,
                )
            except APIError as e:
                logger.warning(
                    "%s: step %s failed (%s) after %s",
                    self.name,
                    step.name,
                    e.error_type,
                    completed or "no completed steps",
                )
                return SubmissionResult(
                    success=False,
                    error_message=e.message,
                    completed_steps=completed,
                    failed_step=step.name,
                )
            except Exception:
                logger.exception("%s: unexpected error in step %s", self.name, step.name)
                return SubmissionResult(
                    success=False,
                    error_message=UNEXPECTED_ERROR_MESSAGE,
                    completed_steps=completed,
                    failed_step=step.name,
                )

            completed.append(step.name)

        logger.info("%s: completed steps %s", self.name, completed)
        return SubmissionResult(
            success=True,
            completed_steps=completed,
            record=ctx.record,
        )
