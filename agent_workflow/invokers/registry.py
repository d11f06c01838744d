"""
Registry Agent Invoker - Runs agents that live in the same process.
"""

import threading
from typing import Any, Callable, Dict, List

from agent_workflow.engine.invoker import AgentInvoker
from agent_workflow.engine.errors import InvocationError

# An in-process agent: receives the resolved step input, returns its output
AgentCallable = Callable[[Any], Any]


class RegistryAgentInvoker(AgentInvoker):
    """
    Invoker backed by a registry of named callables.

    Agents can be registered manually or with the agent() decorator.
    Lookup is by agent id; invoking an unknown id raises InvocationError.

    Usage:
        invoker = RegistryAgentInvoker()

        @invoker.agent("inventory")
        def check_inventory(payload):
            return {"available": True}

        invoker.invoke("inventory", {"item": "sku1"})
    """

    def __init__(self):
        self._agents: Dict[str, AgentCallable] = {}
        self._lock = threading.Lock()

    def register(self, agent_id: str, func: AgentCallable) -> None:
        """
        Register an agent callable.

        Raises:
            ValueError: If agent ID already registered
        """
        with self._lock:
            if agent_id in self._agents:
                raise ValueError(f"Agent '{agent_id}' is already registered")
            self._agents[agent_id] = func

    def agent(self, agent_id: str) -> Callable[[AgentCallable], AgentCallable]:
        """Decorator form of register()"""
        def decorator(func: AgentCallable) -> AgentCallable:
            self.register(agent_id, func)
            return func
        return decorator

    def unregister(self, agent_id: str) -> None:
        """
        Unregister an agent

        Raises:
            KeyError: If agent not found
        """
        with self._lock:
            if agent_id not in self._agents:
                raise KeyError(f"Agent '{agent_id}' not found in registry")
            del self._agents[agent_id]

    def has_agent(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def list_agents(self) -> List[str]:
        """Registered agent IDs, in registration order"""
        return list(self._agents.keys())

    def clear(self) -> None:
        """Clear all registered agents"""
        with self._lock:
            self._agents.clear()

    def invoke(self, agent_id: str, input: Any) -> Any:
        func = self._agents.get(agent_id)
        if func is None:
            raise InvocationError(agent_id, f"Agent '{agent_id}' not found in registry")
        return func(input)
