"""
Workflow Runner

Drives a workflow definition to completion and assembles the execution
report. Phases: idle -> running -> completed | failed.
"""

import logging
import threading
from typing import Dict, Optional

from agent_workflow import config
from agent_workflow.models.execution import (
    ExecutionStatus,
    ExecutionSubStatus,
    RunPhase,
    WorkflowExecutionReport,
    utc_now,
)
from agent_workflow.models.workflow import WorkflowDefinition, WorkflowType
from .errors import CancellationError, InvocationError
from .invoker import AgentInvoker
from .run_context import WorkflowRunContext
from .step_executor import StepExecutor
from .strategies import ExecutionStrategy, LoopStrategy, ParallelStrategy, SequentialStrategy

_logger = logging.getLogger(__name__)


class WorkflowRunner:
    """
    Executes workflow definitions.

    The runner itself holds no per-run state and can be shared between
    threads; each run() gets its own context and execution state.
    """

    def __init__(
        self,
        step_executor: Optional[StepExecutor] = None,
        strategies: Optional[Dict[WorkflowType, ExecutionStrategy]] = None
    ):
        """
        Args:
            step_executor: Executor used for every step (default StepExecutor())
            strategies: Overrides for the workflow-type -> strategy table
        """
        self.step_executor = step_executor or StepExecutor()
        sequential = SequentialStrategy()
        self._strategies: Dict[WorkflowType, ExecutionStrategy] = {
            WorkflowType.SEQUENTIAL: sequential,
            WorkflowType.PARALLEL: ParallelStrategy(),
            WorkflowType.LOOP: LoopStrategy(),
            WorkflowType.CONDITIONAL: sequential,
            WorkflowType.GRAPH: sequential,
            WorkflowType.STATE_MACHINE: sequential,
        }
        if strategies:
            self._strategies.update(strategies)

    def strategy_for(self, workflow_type: WorkflowType) -> ExecutionStrategy:
        """
        Get the strategy for a workflow type

        Raises:
            KeyError: If no strategy handles the type
        """
        if workflow_type not in self._strategies:
            raise KeyError(f"No execution strategy for workflow type '{workflow_type}'")
        return self._strategies[workflow_type]

    def run(
        self,
        definition: WorkflowDefinition,
        invoker: AgentInvoker,
        cancel_event: Optional[threading.Event] = None,
        time_budget: Optional[float] = None,
        run_id: Optional[str] = None
    ) -> WorkflowExecutionReport:
        """
        Execute a workflow.

        Args:
            definition: Workflow to run
            invoker: Runs the sub-agent behind each step
            cancel_event: Set from another thread to cancel between steps
            time_budget: Wall-clock budget in seconds; falls back to the
                         definition's, then to WORKFLOW_TIME_BUDGET
            run_id: Optional identifier echoed in the report

        Returns:
            WorkflowExecutionReport, always with status and message set.
            Invocation errors and cancellation never escape this method.
        """
        if time_budget is None:
            time_budget = definition.time_budget_seconds
        if time_budget is None:
            time_budget = config.WORKFLOW_TIME_BUDGET

        context = WorkflowRunContext(
            definition=definition,
            invoker=invoker,
            executor=self.step_executor,
            cancel_event=cancel_event,
            time_budget=time_budget,
            run_id=run_id,
        )
        context.start()

        if not definition.steps:
            _logger.info("[Workflow] No steps defined.")
            context.phase = RunPhase.COMPLETED
            return self._build_report(
                context,
                ExecutionStatus.COMPLETED_NO_STEPS,
                "Workflow completed: No steps."
            )

        strategy = self.strategy_for(definition.workflow_type)
        try:
            strategy.execute(context)
        except CancellationError as e:
            _logger.warning(f"[Workflow] Run cancelled: {e.reason}")
            context.phase = RunPhase.FAILED
            return self._build_report(
                context,
                ExecutionStatus.FAILED,
                e.reason,
                sub_status=ExecutionSubStatus.CANCELLED
            )
        except InvocationError as e:
            context.phase = RunPhase.FAILED
            return self._build_report(
                context,
                ExecutionStatus.FAILED,
                f"Workflow failed at step '{e.step}': {e}"
            )

        return self._completed_report(context)

    def _completed_report(self, context: WorkflowRunContext) -> WorkflowExecutionReport:
        """Report for a run whose strategy finished without a fatal error"""
        failed = context.failed_steps
        attempted = context.attempted_steps

        if failed and failed >= attempted:
            context.phase = RunPhase.FAILED
            return self._build_report(
                context,
                ExecutionStatus.FAILED,
                f"Workflow failed: all {attempted} step execution(s) failed."
            )

        context.phase = RunPhase.COMPLETED
        if context.definition.workflow_type == WorkflowType.LOOP:
            summary = f"Loop workflow completed after {context.iterations} iterations"
        else:
            summary = "Workflow completed"

        if failed:
            return self._build_report(
                context,
                ExecutionStatus.PARTIAL_FAILURE,
                f"{summary}; {failed} of {attempted} step execution(s) failed."
            )
        if context.definition.workflow_type != WorkflowType.LOOP:
            summary += " successfully"
        return self._build_report(context, ExecutionStatus.SUCCESS, f"{summary}.")

    def _build_report(
        self,
        context: WorkflowRunContext,
        status: ExecutionStatus,
        message: str,
        sub_status: Optional[ExecutionSubStatus] = None
    ) -> WorkflowExecutionReport:
        report = WorkflowExecutionReport(
            run_id=context.run_id,
            status=status,
            sub_status=sub_status,
            phase=context.phase,
            message=message,
            state=context.state_snapshot(),
            diagnostics=context.diagnostics(),
            failures=list(context.failures),
            iterations=context.iterations,
            termination_reason=context.termination_reason,
            started_at=context.started_at,
            completed_at=utc_now(),
        )
        _logger.info(f"[Workflow] Finished: status={status.value}, phase={context.phase.value} - {message}")
        return report
