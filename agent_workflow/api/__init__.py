"""
Workflow REST API.

Usage:
    from agent_workflow.api import app
"""

from .app import app

__all__ = ['app']
