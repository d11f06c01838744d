"""
API Request Models

Pydantic models for API request bodies.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class RunWorkflowRequest(BaseModel):
    """
    Request to run a workflow definition.

    Used with POST /workflow/run.

    definition accepts either the canonical WorkflowDefinition shape or a
    workflow agent configuration as saved by the agent builder
    (agentGoal / workflowType / workflowSteps / loop* keys). It is kept as a
    plain dict here and parsed by WorkflowDefinition.from_config() so both
    shapes share one validation path.
    """
    model_config = ConfigDict(populate_by_name=True)

    definition: Dict[str, Any]
    time_budget_seconds: Optional[float] = Field(default=None, alias="timeBudgetSeconds", gt=0)
    run_id: Optional[str] = Field(
        default=None,
        alias="runId",
        min_length=1,
        description="Caller-chosen run id, so the run can be cancelled while it executes"
    )
