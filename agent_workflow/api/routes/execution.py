"""
Workflow Execution API routes.

Provides endpoints for running workflows and cancelling active runs.
"""

import asyncio
import logging
import threading
import time
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from ..dependencies import get_invoker, get_runner
from agent_workflow.models import RunWorkflowRequest, WorkflowDefinition
from agent_workflow.utils import sanitize_error_message, uuid7_str

logger = logging.getLogger('workflow.api')

router = APIRouter(prefix="/workflow", tags=["execution"])

# Active runs - for cancellation support
# Maps run_id -> threading.Event (set when cancelled)
# Using threading.Event because the signal crosses from the event loop to the worker thread
active_runs: Dict[str, threading.Event] = {}


@router.post("/run")
async def run_workflow(
    request: RunWorkflowRequest,
    runner = Depends(get_runner),
    invoker = Depends(get_invoker)
):
    """
    Run a workflow definition to completion and return its execution report.

    The definition is validated before anything runs; invalid definitions
    are rejected with 400. The run executes in a worker thread and can be
    cancelled through POST /workflow/{run_id}/cancel while it is active.
    """
    start_time = time.time()

    try:
        definition = WorkflowDefinition.from_config(request.definition)
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(e))

    run_id = request.run_id or uuid7_str()
    if run_id in active_runs:
        raise HTTPException(status_code=409, detail=f"Run '{run_id}' is already active")

    logger.info(
        f"[API REQUEST] POST /workflow/run - run_id={run_id}, "
        f"type={definition.workflow_type.value}, steps={len(definition.steps)}"
    )

    cancel_event = threading.Event()
    active_runs[run_id] = cancel_event
    try:
        report = await asyncio.to_thread(
            runner.run,
            definition,
            invoker,
            cancel_event=cancel_event,
            time_budget=request.time_budget_seconds,
            run_id=run_id
        )
    finally:
        active_runs.pop(run_id, None)

    elapsed_ms = (time.time() - start_time) * 1000
    logger.info(f"[API RESPONSE] POST /workflow/run - run_id={run_id}, status={report.status.value}, time={elapsed_ms:.0f}ms")

    return report.model_dump(by_alias=True, mode="json")


@router.post("/{run_id}/cancel")
async def cancel_workflow(run_id: str):
    """
    Cancel an active run.

    The run stops before its next step (or parallel group) and reports
    FAILED with sub-status CANCELLED.
    """
    cancel_event = active_runs.get(run_id)
    if cancel_event is None:
        raise HTTPException(status_code=404, detail=f"No active run '{run_id}'")

    logger.info(f"[API REQUEST] POST /workflow/{run_id}/cancel")
    cancel_event.set()
    return {"runId": run_id, "cancelled": True}


@router.get("/active")
async def list_active_runs():
    """Ids of runs currently executing"""
    return {"runs": list(active_runs.keys())}
