"""
Shared dependencies for FastAPI routes.

Provides dependency injection functions for the runner and agent invoker.
"""

from fastapi import HTTPException

from agent_workflow.engine import AgentInvoker, WorkflowRunner

# Module-level references set by the app on startup
_runner = None
_invoker = None


def set_runner(runner: WorkflowRunner):
    """Set the workflow runner instance. Called during app startup."""
    global _runner
    _runner = runner


def set_invoker(invoker: AgentInvoker):
    """Set the agent invoker instance. Called during app startup."""
    global _invoker
    _invoker = invoker


def get_runner() -> WorkflowRunner:
    """
    Dependency that returns the workflow runner.

    Raises HTTPException if runner is not initialized.
    """
    if not _runner:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return _runner


def get_invoker() -> AgentInvoker:
    """
    Dependency that returns the agent invoker.

    Raises HTTPException if invoker is not initialized.
    """
    if not _invoker:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return _invoker
