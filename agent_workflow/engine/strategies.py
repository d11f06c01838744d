"""
Execution Strategies - How a workflow's step list is driven.

- SequentialStrategy: steps in declared order, each seeing all prior outputs
- ParallelStrategy:   steps grouped by their `group` label; each group runs
                      concurrently against one snapshot, then merges atomically
- LoopStrategy:       the step list is a loop body, repeated until an exit
                      condition or max_iterations is reached

Strategies raise InvocationError (fail-fast) or CancellationError; the runner
turns those into a report.
"""

import json
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Tuple

from agent_workflow.models.execution import StepResult
from agent_workflow.models.workflow import LoopSettings, WorkflowStep
from .errors import InvocationError
from .references import REFERENCE_SIGIL, PathResolver, Reference
from .run_context import WorkflowRunContext

_logger = logging.getLogger(__name__)

DEFAULT_GROUP = "default"

# Loop termination reasons reported back to callers
EXIT_TOOL = "exit_tool"
STATE_VALUE = "state_value"
MAX_ITERATIONS = "max_iterations"


class ExecutionStrategy(ABC):
    """Base class for workflow-type strategies"""

    @abstractmethod
    def execute(self, context: WorkflowRunContext) -> None:
        """
        Drive all steps of context.definition.

        Raises:
            InvocationError: A step failed under the fail-fast policy
            CancellationError: The run was cancelled or ran out of time
        """
        pass


class SequentialStrategy(ExecutionStrategy):
    """Runs steps one after another in declared order"""

    def execute(self, context: WorkflowRunContext) -> None:
        self.run_steps(context)

    def run_steps(self, context: WorkflowRunContext) -> List[StepResult]:
        """
        Run every step once, storing each result before the next step's
        inputs are resolved.

        Returns:
            Results of the steps that succeeded, in order
        """
        executed = []
        for index, step in enumerate(context.definition.steps):
            context.check_cancelled()
            context.attempted_steps += 1
            try:
                result = context.execute_step(step, index, context.state)
            except InvocationError as e:
                context.handle_failure(step, index, e)
                continue
            context.store_result(step, index, result)
            executed.append(result)
        return executed


class ParallelStrategy(ExecutionStrategy):
    """
    Runs each group of steps concurrently.

    Every step of a group resolves its inputs from the same read-only
    snapshot taken when the group starts, so steps in one group never see
    each other's outputs. Results are merged into the execution state in
    declared order, as one batch, after the whole group has finished.
    """

    def __init__(self, max_workers: int = None):
        """
        Args:
            max_workers: Optional cap on threads per group; by default every
                         step of a group gets its own thread
        """
        self.max_workers = max_workers

    def plan_groups(self, steps: List[WorkflowStep]) -> List[Tuple[str, List[Tuple[int, WorkflowStep]]]]:
        """
        Partition steps by group label, ordered by first appearance.

        Returns:
            [(group_name, [(step_index, step), ...]), ...]
        """
        groups: Dict[str, List[Tuple[int, WorkflowStep]]] = {}
        for index, step in enumerate(steps):
            groups.setdefault(step.group or DEFAULT_GROUP, []).append((index, step))
        return list(groups.items())

    def execute(self, context: WorkflowRunContext) -> None:
        for group_name, members in self.plan_groups(context.definition.steps):
            context.check_cancelled()
            self._run_group(context, group_name, members)

    def _run_group(
        self,
        context: WorkflowRunContext,
        group_name: str,
        members: List[Tuple[int, WorkflowStep]]
    ) -> None:
        _logger.info(f"[Workflow] Running parallel group '{group_name}' with {len(members)} step(s)")
        snapshot = context.state.snapshot()
        workers = min(len(members), self.max_workers) if self.max_workers else len(members)

        step_warnings = [[] for _ in members]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"workflow-{group_name}") as pool:
            futures = []
            for slot, (index, step) in enumerate(members):
                context.attempted_steps += 1
                futures.append(pool.submit(context.execute_step, step, index, snapshot, step_warnings[slot]))

        batch: Dict[str, StepResult] = {}
        first_error = None
        for slot, (index, step) in enumerate(members):
            context.warnings.extend(step_warnings[slot])
            try:
                result = futures[slot].result()
            except InvocationError as e:
                context.handle_failure(step, index, e, raise_on_fail_fast=False)
                first_error = first_error or e
                continue

            key = context.output_key_for(step)
            if key is None:
                context.warn_missing_output_key(step, index)
                continue
            batch[key] = result

        context.state.merge(batch)
        _logger.info(f"[Workflow] Parallel group '{group_name}' merged {len(batch)} output(s)")

        if first_error is not None and not context.definition.continue_on_error:
            raise first_error


class LoopStrategy(SequentialStrategy):
    """
    Repeats the step list until an exit condition holds.

    After each iteration, in order of precedence:
    1. exit tool - a step of this iteration ran the configured exit tool
    2. state value - the configured state key holds the configured value
    3. max_iterations - always enforced, even when no other condition is set

    Outputs overwrite the same keys every iteration unless an output key
    contains "{iteration}", which is replaced by the 1-based iteration number.
    """

    def __init__(self):
        self._paths = PathResolver()

    def execute(self, context: WorkflowRunContext) -> None:
        settings = context.definition.loop
        _logger.info(f"[Workflow] Starting LOOP. Max iterations: {settings.max_iterations}")
        if settings.checks_exit_tool:
            _logger.info(f"[Workflow]   Exit on tool: {settings.exit_tool_name}")
        if settings.checks_exit_state:
            _logger.info(f"[Workflow]   Exit on state: {settings.exit_state_key} = {settings.exit_state_value}")

        context.iterations = 0
        while context.iterations < settings.max_iterations:
            context.check_cancelled()
            context.iterations += 1
            _logger.info(f"[Workflow] LOOP Iteration: {context.iterations}")

            executed = self.run_steps(context)

            reason = self.termination_reason(context, settings, executed)
            if reason:
                context.termination_reason = reason
                _logger.info(f"[Workflow] Terminating loop after iteration {context.iterations}: {reason}")
                return

        context.termination_reason = MAX_ITERATIONS
        _logger.info(f"[Workflow] Terminating loop: Max iterations ({settings.max_iterations}) reached.")

    def termination_reason(
        self,
        context: WorkflowRunContext,
        settings: LoopSettings,
        executed: List[StepResult]
    ) -> str:
        """Exit reason for the iteration that just finished, or '' to continue"""
        if settings.checks_exit_tool and any(
            self._used_tool(result, settings.exit_tool_name) for result in executed
        ):
            return EXIT_TOOL

        if settings.checks_exit_state:
            path = Reference.parse(REFERENCE_SIGIL + settings.exit_state_key.lstrip(REFERENCE_SIGIL)).path
            found, value = self._paths.lookup(path, context.state)
            _logger.debug(
                f"[Workflow] Checking state termination: key '{settings.exit_state_key}', "
                f"value: {value!r}, expected: {settings.exit_state_value!r}"
            )
            if found and _as_text(value) == _as_text(settings.exit_state_value):
                return STATE_VALUE

        return ""

    def _used_tool(self, result: StepResult, tool_name: str) -> bool:
        if result.agent_id == tool_name:
            return True
        output = result.result
        if isinstance(output, dict):
            return tool_name in (output.get("toolNameUsed"), output.get("tool_name_used"))
        return False


def _as_text(value: Any) -> str:
    """String form used to compare state values with the configured exit value"""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError):
        return str(value)
