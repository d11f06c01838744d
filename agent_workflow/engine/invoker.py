"""
Agent Invoker - Contract between the engine and whatever runs sub-agents.

The engine treats inputs and outputs as opaque JSON-like values; schema
validation is the invoked agent's responsibility. Timeouts and concurrency
limits belong to the invoker implementation.
"""

from abc import ABC, abstractmethod
from typing import Any

from .errors import InvocationError


class AgentInvoker(ABC):
    """
    Base class for agent invokers.

    Implementations:
    - RegistryAgentInvoker: in-process callables registered by agent id
    - HttpAgentInvoker: agents served behind an HTTP gateway

    Invokers may be called from several threads at once (parallel
    workflows), so invoke() must be safe to call concurrently.
    """

    @abstractmethod
    def invoke(self, agent_id: str, input: Any) -> Any:
        """
        Run one agent.

        Args:
            agent_id: Identifier of the sub-agent to run
            input: Fully resolved step input

        Returns:
            The agent's output

        Raises:
            InvocationError: If the agent could not be run or failed
        """
        pass


__all__ = ['AgentInvoker', 'InvocationError']
