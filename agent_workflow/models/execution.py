"""
Execution Models

Step results and the report handed back to callers after a run.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    """Final outcome of a workflow run"""
    SUCCESS = "SUCCESS"
    COMPLETED_NO_STEPS = "COMPLETED_NO_STEPS"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    FAILED = "FAILED"


class ExecutionSubStatus(str, Enum):
    """Refines FAILED"""
    CANCELLED = "CANCELLED"


class RunPhase(str, Enum):
    """Runner state machine: idle -> running -> completed | failed"""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StepResult(BaseModel):
    """Output of one step, as stored in the execution state"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    result: Any = None
    received_input: Any = Field(default=None, alias="receivedInput")
    timestamp: datetime = Field(default_factory=utc_now)
    agent_id: Optional[str] = Field(default=None, alias="agentId")
    step_name: Optional[str] = Field(default=None, alias="stepName")


class Diagnostic(BaseModel):
    """A warning or error collected during a run"""
    model_config = ConfigDict(populate_by_name=True)

    level: str  # warning, error
    code: str
    message: str
    step: Optional[str] = None

    @classmethod
    def from_warning(cls, warning) -> "Diagnostic":
        return cls(level="warning", code=warning.code, message=warning.message, step=warning.step)


class StepFailure(BaseModel):
    """A step whose agent invocation failed"""
    model_config = ConfigDict(populate_by_name=True)

    step: str
    step_index: int = Field(..., alias="stepIndex")
    agent_id: str = Field(..., alias="agentId")
    iteration: Optional[int] = None
    message: str


class WorkflowExecutionReport(BaseModel):
    """Result of WorkflowRunner.run()"""
    model_config = ConfigDict(populate_by_name=True)

    run_id: Optional[str] = Field(default=None, alias="runId")
    status: ExecutionStatus
    sub_status: Optional[ExecutionSubStatus] = Field(default=None, alias="subStatus")
    phase: RunPhase
    message: str
    state: Dict[str, StepResult] = Field(default_factory=dict)
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    failures: List[StepFailure] = Field(default_factory=list)
    # Loop workflows only
    iterations: Optional[int] = None
    termination_reason: Optional[str] = Field(default=None, alias="terminationReason")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")

    @property
    def cancelled(self) -> bool:
        return self.sub_status == ExecutionSubStatus.CANCELLED
