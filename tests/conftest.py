"""
Shared fixtures for engine, invoker and API tests.
"""

import threading
from typing import Any, Callable, Dict, List, Tuple

import pytest

from agent_workflow.engine import AgentInvoker, WorkflowRunner


class StubInvoker(AgentInvoker):
    """
    Invoker whose agents are plain callables (or fixed return values).

    Records every call as (agent_id, input) in invocation order.
    """

    def __init__(self, agents: Dict[str, Any] = None):
        self.agents: Dict[str, Any] = dict(agents or {})
        self.calls: List[Tuple[str, Any]] = []
        self._lock = threading.Lock()

    def invoke(self, agent_id: str, input: Any) -> Any:
        with self._lock:
            self.calls.append((agent_id, input))
        agent = self.agents.get(agent_id)
        if isinstance(agent, Exception):
            raise agent
        if callable(agent):
            return agent(input)
        return agent

    def inputs_for(self, agent_id: str) -> List[Any]:
        return [payload for called, payload in self.calls if called == agent_id]


def echo(payload: Any) -> Any:
    """Agent that returns its input"""
    return payload


@pytest.fixture
def invoker():
    return StubInvoker()


@pytest.fixture
def runner():
    return WorkflowRunner()


@pytest.fixture
def make_invoker() -> Callable[..., StubInvoker]:
    def factory(**agents):
        return StubInvoker(agents)
    return factory
