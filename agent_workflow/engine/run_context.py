"""
Workflow Run Context

Per-run bookkeeping shared by the runner and the execution strategies:
the execution state, collected diagnostics and failures, and the
cancellation/time-budget checks performed between steps.
"""

import logging
import threading
import time
from collections.abc import Mapping
from typing import Dict, List, Optional, Set

from agent_workflow.models.execution import (
    Diagnostic,
    RunPhase,
    StepFailure,
    StepResult,
    utc_now,
)
from agent_workflow.models.workflow import WorkflowDefinition, WorkflowStep
from .errors import CancellationError, InvocationError, MissingOutputKeyWarning, WorkflowWarning
from .execution_state import ExecutionState
from .invoker import AgentInvoker
from .step_executor import StepExecutor

_logger = logging.getLogger(__name__)

ITERATION_PLACEHOLDER = "{iteration}"


class WorkflowRunContext:
    """
    Everything one run needs, passed explicitly to every strategy.

    Nothing here is process-global: a fresh context (and ExecutionState)
    is created for each call to WorkflowRunner.run().
    """

    def __init__(
        self,
        definition: WorkflowDefinition,
        invoker: AgentInvoker,
        executor: StepExecutor,
        cancel_event: Optional[threading.Event] = None,
        time_budget: Optional[float] = None,
        run_id: Optional[str] = None
    ):
        self.definition = definition
        self.invoker = invoker
        self.executor = executor
        self.cancel_event = cancel_event
        self.time_budget = time_budget
        self.run_id = run_id

        self.state = ExecutionState()
        self.phase = RunPhase.IDLE
        self.warnings: List[WorkflowWarning] = []
        self.errors: List[Diagnostic] = []
        self.failures: List[StepFailure] = []
        self.attempted_steps = 0
        self.iterations: Optional[int] = None
        self.termination_reason: Optional[str] = None

        self.started_at = utc_now()
        self._started_monotonic = time.monotonic()
        self._deadline = self._started_monotonic + time_budget if time_budget is not None else None
        self._missing_key_warned: Set[int] = set()

    # =========================================================================
    # Phase / cancellation
    # =========================================================================

    def start(self) -> None:
        self.phase = RunPhase.RUNNING
        _logger.info(
            f"[Workflow] Starting workflow: \"{self.definition.goal}\", "
            f"type={self.definition.workflow_type.value}, steps={len(self.definition.steps)}"
        )

    def check_cancelled(self) -> None:
        """
        Raise CancellationError if the run was cancelled or ran out of time.

        Called between steps only; an agent invocation in flight is never
        interrupted.
        """
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise CancellationError("Workflow run was cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise CancellationError(
                f"Workflow run exceeded its time budget of {self.time_budget}s",
                timed_out=True
            )

    # =========================================================================
    # Step execution
    # =========================================================================

    def step_label(self, step: WorkflowStep, index: int) -> str:
        return step.name or step.agent_id or f"Step {index + 1}"

    def execute_step(
        self,
        step: WorkflowStep,
        index: int,
        state: Mapping,
        warnings: Optional[List[WorkflowWarning]] = None
    ) -> StepResult:
        """
        Execute one step against the given state view.

        Args:
            step: Step to execute
            index: Position of the step in the definition
            state: ExecutionState or a read-only snapshot of it
            warnings: Where to collect warnings (defaults to this context);
                      parallel groups pass a per-step list

        Raises:
            InvocationError: If the agent invocation fails
        """
        label = self.step_label(step, index)
        _logger.info(f"[Workflow] Executing step {index + 1}: {label}")
        target = self.warnings if warnings is None else warnings
        return self.executor.execute(step, state, self.invoker, diagnostics=target, label=label)

    def handle_failure(
        self,
        step: WorkflowStep,
        index: int,
        error: InvocationError,
        raise_on_fail_fast: bool = True
    ) -> None:
        """
        Record a failed step and apply the workflow's error policy.

        Raises:
            InvocationError: Re-raised under fail-fast when raise_on_fail_fast
        """
        label = self.step_label(step, index)
        _logger.error(f"[Workflow] Step '{label}' failed: {error}")
        self.failures.append(StepFailure(
            step=label,
            step_index=index,
            agent_id=step.agent_id,
            iteration=self.iterations,
            message=error.message,
        ))
        self.errors.append(Diagnostic(
            level="error",
            code="INVOCATION_ERROR",
            message=str(error),
            step=label,
        ))
        if raise_on_fail_fast and not self.definition.continue_on_error:
            raise error

    def output_key_for(self, step: WorkflowStep) -> Optional[str]:
        """Output key with any {iteration} placeholder filled in"""
        if not step.output_key:
            return None
        if self.iterations is not None:
            return step.output_key.replace(ITERATION_PLACEHOLDER, str(self.iterations))
        return step.output_key

    def warn_missing_output_key(self, step: WorkflowStep, index: int) -> None:
        """Log MissingOutputKeyWarning once per step"""
        if index in self._missing_key_warned:
            return
        self._missing_key_warned.add(index)
        warning = MissingOutputKeyWarning(self.step_label(step, index))
        _logger.warning(f"[Workflow] {warning.message}")
        self.warnings.append(warning)

    def store_result(self, step: WorkflowStep, index: int, result: StepResult) -> None:
        """Publish a finished step's result under its output key"""
        key = self.output_key_for(step)
        if key is None:
            self.warn_missing_output_key(step, index)
            return
        self.state.set(key, result)
        _logger.info(f"[Workflow] Output stored to key \"{key}\"")

    # =========================================================================
    # Report data
    # =========================================================================

    @property
    def failed_steps(self) -> int:
        return len(self.failures)

    def diagnostics(self) -> List[Diagnostic]:
        """Warnings first (in the order they were raised), then errors"""
        return [Diagnostic.from_warning(w) for w in self.warnings] + list(self.errors)

    def state_snapshot(self) -> Dict[str, StepResult]:
        return self.state.to_dict()
