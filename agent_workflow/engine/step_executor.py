"""
Step Executor - Runs a single workflow step.
"""

import logging
from collections.abc import Mapping
from typing import List, Optional

from agent_workflow.models.execution import StepResult, utc_now
from agent_workflow.models.workflow import WorkflowStep
from agent_workflow.utils import sanitize_error_message
from .errors import InvocationError
from .invoker import AgentInvoker
from .mapping_resolver import MappingResolver
from .references import PathResolver

_logger = logging.getLogger(__name__)


class StepExecutor:
    """
    Resolves a step's inputs, invokes its agent and packages the result.

    Does not write to the execution state; storing the result under the
    step's output key is the runner's job.
    """

    def execute(
        self,
        step: WorkflowStep,
        state: Mapping,
        invoker: AgentInvoker,
        diagnostics: Optional[List] = None,
        label: Optional[str] = None
    ) -> StepResult:
        """
        Execute one step.

        Args:
            step: Step to execute
            state: Execution state (or a snapshot of it) to resolve against
            invoker: Agent invoker
            diagnostics: Optional list receiving unresolved-reference warnings,
                         tagged with the step label
            label: Step label for logs and errors (defaults to step.identifier)

        Returns:
            StepResult with the agent output and the input it received

        Raises:
            InvocationError: If the agent invocation fails
        """
        label = label or step.identifier

        warnings = []
        resolver = MappingResolver(PathResolver(diagnostics=warnings))
        resolved_input = resolver.resolve(step.input_mapping, state)
        for warning in warnings:
            warning.step = label
        if diagnostics is not None:
            diagnostics.extend(warnings)

        _logger.debug(f"[Workflow] Step '{label}' -> agent '{step.agent_id}' input: {resolved_input!r}")

        try:
            output = invoker.invoke(step.agent_id, resolved_input)
        except InvocationError as e:
            if e.step is None:
                e.step = label
            raise
        except Exception as e:
            raise InvocationError(
                step.agent_id,
                sanitize_error_message(e),
                original_error=e,
                step=label
            ) from e

        return StepResult(
            result=output,
            received_input=resolved_input,
            timestamp=utc_now(),
            agent_id=step.agent_id,
            step_name=label,
        )
