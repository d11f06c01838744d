"""
agent-workflow

Execution engine for workflow agents: ordered, grouped or looping steps,
each delegating to a named sub-agent.
"""

# Engine first: the models import engine.references during their own import
from .engine import WorkflowRunner, AgentInvoker, InvocationError, CancellationError
from .models import WorkflowDefinition, WorkflowStep, WorkflowExecutionReport, ExecutionStatus

__version__ = "0.1.0"

__all__ = [
    'WorkflowRunner',
    'AgentInvoker',
    'InvocationError',
    'CancellationError',
    'WorkflowDefinition',
    'WorkflowStep',
    'WorkflowExecutionReport',
    'ExecutionStatus',
]
