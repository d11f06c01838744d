"""
Workflow REST API - FastAPI application setup.

This module sets up the FastAPI application and includes the route modules.
The actual route handlers are in the routes/ subpackage.

Endpoints:
- execution: Run workflows, cancel and list active runs
- health: Liveness check
"""

import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agent_workflow import __version__, config
from agent_workflow.engine import WorkflowRunner
from agent_workflow.invokers import HttpAgentInvoker
from . import dependencies
from .routes import execution_router
from .routes.execution import active_runs

# Configure logger for API
logger = logging.getLogger('workflow.api')


# =============================================================================
# App Configuration
# =============================================================================

app = FastAPI(
    title="Agent Workflow API",
    description="REST API for executing sequential, parallel and loop workflow agents",
    version=__version__
)

# CORS middleware for web clients
# Note: When using credentials, we must specify exact origins, not "*"
CORS_ORIGINS = config.get_cors_origins()
logger.info(f"[CORS] Allowed origins: {CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    """Create the runner and the agent invoker"""
    dependencies.set_runner(WorkflowRunner())
    dependencies.set_invoker(HttpAgentInvoker(
        base_url=config.AGENT_GATEWAY_URL,
        timeout=config.AGENT_REQUEST_TIMEOUT
    ))
    logger.info(f"[STARTUP] Agent gateway: {config.AGENT_GATEWAY_URL}")


@app.on_event("shutdown")
async def shutdown():
    """Cancel all active runs on shutdown"""
    logger.info(f"[SHUTDOWN] Cancelling {len(active_runs)} active runs...")

    for run_id, cancel_event in list(active_runs.items()):
        logger.info(f"[SHUTDOWN] Cancelling run {run_id[:8]}...")
        cancel_event.set()

    # Give runs a moment to reach their next cancellation check
    if active_runs:
        await asyncio.sleep(0.5)

    logger.info("[SHUTDOWN] Server shutdown complete")


# =============================================================================
# Include Route Modules
# =============================================================================

app.include_router(execution_router)


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "activeRuns": len(active_runs),
        "agentGateway": config.AGENT_GATEWAY_URL
    }
