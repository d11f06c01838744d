"""
Agent invokers shipped with the engine.

Usage:
    from agent_workflow.invokers import RegistryAgentInvoker

    invoker = RegistryAgentInvoker()
    invoker.register("summarizer", summarize)
"""

from .registry import RegistryAgentInvoker, AgentCallable
from .http import HttpAgentInvoker

__all__ = [
    'RegistryAgentInvoker',
    'AgentCallable',
    'HttpAgentInvoker',
]
