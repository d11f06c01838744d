"""
Shared Models

Pydantic models used across engine, invokers and api.
"""

from .workflow import (
    WorkflowType,
    ErrorPolicy,
    LoopTerminationType,
    WorkflowStep,
    LoopSettings,
    WorkflowDefinition,
)
from .execution import (
    ExecutionStatus,
    ExecutionSubStatus,
    RunPhase,
    StepResult,
    Diagnostic,
    StepFailure,
    WorkflowExecutionReport,
)
from .requests import (
    RunWorkflowRequest,
)

__all__ = [
    # Workflow
    'WorkflowType',
    'ErrorPolicy',
    'LoopTerminationType',
    'WorkflowStep',
    'LoopSettings',
    'WorkflowDefinition',
    # Execution
    'ExecutionStatus',
    'ExecutionSubStatus',
    'RunPhase',
    'StepResult',
    'Diagnostic',
    'StepFailure',
    'WorkflowExecutionReport',
    # Requests
    'RunWorkflowRequest',
]
