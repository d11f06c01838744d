"""
Workflow Engine

Executes workflow agents: resolves each step's input mapping against the
outputs of earlier steps, invokes the step's sub-agent, and threads the
results forward.
"""

from .errors import (
    WorkflowWarning,
    UnresolvedReferenceWarning,
    MissingOutputKeyWarning,
    InvocationError,
    CancellationError,
)
from .references import LiteralValue, Reference, PathResolver, compile_value, decompile_value
from .mapping_resolver import MappingResolver
from .execution_state import ExecutionState
from .invoker import AgentInvoker
from .step_executor import StepExecutor
from .run_context import WorkflowRunContext
from .strategies import ExecutionStrategy, SequentialStrategy, ParallelStrategy, LoopStrategy
from .runner import WorkflowRunner

__all__ = [
    'WorkflowWarning',
    'UnresolvedReferenceWarning',
    'MissingOutputKeyWarning',
    'InvocationError',
    'CancellationError',
    'LiteralValue',
    'Reference',
    'PathResolver',
    'compile_value',
    'decompile_value',
    'MappingResolver',
    'ExecutionState',
    'AgentInvoker',
    'StepExecutor',
    'WorkflowRunContext',
    'ExecutionStrategy',
    'SequentialStrategy',
    'ParallelStrategy',
    'LoopStrategy',
    'WorkflowRunner',
]
