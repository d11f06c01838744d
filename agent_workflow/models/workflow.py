"""
Workflow Models

Workflow definitions as supplied by the configuration layer. Definitions are
frozen: once built they cannot change, so nothing can mutate them while a
run is in progress.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from agent_workflow import config
from agent_workflow.engine.references import compile_value, decompile_value


class WorkflowType(str, Enum):
    """How the step list is executed"""
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    LOOP = "loop"
    # Accepted by the agent builder, executed sequentially
    CONDITIONAL = "conditional"
    GRAPH = "graph"
    STATE_MACHINE = "stateMachine"


class ErrorPolicy(str, Enum):
    """What a step invocation failure does to the rest of the run"""
    FAIL_FAST = "fail_fast"
    CONTINUE_ON_ERROR = "continue_on_error"


class LoopTerminationType(str, Enum):
    """Which loop exit signal is honoured besides max_iterations"""
    TOOL = "tool"
    STATE = "state"
    MAX_ITERATIONS = "max_iterations"
    NONE = "none"


# Builder spellings; None means every configured exit check runs
_TERMINATION_SYNONYMS = {
    "tool_success": LoopTerminationType.TOOL,
    "state_change": LoopTerminationType.STATE,
    "subagent_signal": None,
}


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=False)


class WorkflowStep(_DefinitionModel):
    """One unit of work, delegated to an independently defined sub-agent"""
    agent_id: str = Field(..., alias="agentId", min_length=1)
    input_mapping: Any = Field(default_factory=dict, alias="inputMapping")
    output_key: Optional[str] = Field(default=None, alias="outputKey")
    name: Optional[str] = None
    description: Optional[str] = None
    group: Optional[str] = None  # Parallel group label

    @field_validator("input_mapping", mode="after")
    @classmethod
    def compile_input_mapping(cls, value: Any) -> Any:
        return compile_value(value)

    @field_validator("output_key", mode="before")
    @classmethod
    def blank_output_key_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_serializer("input_mapping")
    def serialize_input_mapping(self, value: Any) -> Any:
        return decompile_value(value)

    @property
    def identifier(self) -> str:
        """Name used in logs and diagnostics"""
        return self.name or self.agent_id


class LoopSettings(_DefinitionModel):
    """Loop workflow termination settings"""
    max_iterations: int = Field(
        default_factory=lambda: config.DEFAULT_LOOP_MAX_ITERATIONS,
        alias="maxIterations",
        ge=1
    )
    termination_condition_type: Optional[LoopTerminationType] = Field(
        default=None, alias="terminationConditionType"
    )
    exit_tool_name: Optional[str] = Field(default=None, alias="exitToolName")
    exit_state_key: Optional[str] = Field(default=None, alias="exitStateKey")
    exit_state_value: Optional[Any] = Field(default=None, alias="exitStateValue")

    @field_validator("termination_condition_type", mode="before")
    @classmethod
    def normalize_termination_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value:
                return None
            return _TERMINATION_SYNONYMS.get(value, value)
        return value

    @property
    def checks_exit_tool(self) -> bool:
        if not self.exit_tool_name:
            return False
        return self.termination_condition_type in (None, LoopTerminationType.TOOL)

    @property
    def checks_exit_state(self) -> bool:
        if not self.exit_state_key or self.exit_state_value is None:
            return False
        return self.termination_condition_type in (None, LoopTerminationType.STATE)


class WorkflowDefinition(_DefinitionModel):
    """Complete workflow definition"""
    goal: str = Field(default="", alias="goal")
    workflow_type: WorkflowType = Field(default=WorkflowType.SEQUENTIAL, alias="workflowType")
    steps: List[WorkflowStep] = Field(default_factory=list)
    loop: LoopSettings = Field(default_factory=LoopSettings)
    error_policy: ErrorPolicy = Field(default=ErrorPolicy.FAIL_FAST, alias="errorPolicy")
    time_budget_seconds: Optional[float] = Field(default=None, alias="timeBudgetSeconds", gt=0)

    @property
    def continue_on_error(self) -> bool:
        return self.error_policy == ErrorPolicy.CONTINUE_ON_ERROR

    @classmethod
    def from_config(cls, data: Dict[str, Any]) -> "WorkflowDefinition":
        """
        Build a definition from either the canonical shape or a workflow
        agent configuration as saved by the agent builder.

        Agent configuration keys:
            agentGoal, workflowType, workflowSteps, loopMaxIterations,
            terminationConditions.maxIterations, loopTerminationConditionType,
            loopExitToolName, loopExitStateKey (or loopStateKey),
            loopExitStateValue, continueOnError

        Raises:
            pydantic.ValidationError: If the definition is invalid
        """
        if "workflowSteps" not in data and "agentGoal" not in data:
            return cls.model_validate(data)

        termination = data.get("terminationConditions") or {}
        loop: Dict[str, Any] = {}
        max_iterations = data.get("loopMaxIterations", termination.get("maxIterations"))
        if max_iterations is not None:
            loop["max_iterations"] = max_iterations
        for target, source_keys in (
            ("termination_condition_type", ("loopTerminationConditionType",)),
            ("exit_tool_name", ("loopExitToolName",)),
            ("exit_state_key", ("loopExitStateKey", "loopStateKey")),
            ("exit_state_value", ("loopExitStateValue",)),
        ):
            for key in source_keys:
                if data.get(key) is not None:
                    loop[target] = data[key]
                    break

        definition: Dict[str, Any] = {
            "goal": data.get("agentGoal") or data.get("goal") or "",
            "workflow_type": data.get("workflowType") or WorkflowType.SEQUENTIAL,
            "steps": data.get("workflowSteps") or [],
            "loop": loop,
        }
        if data.get("continueOnError"):
            definition["error_policy"] = ErrorPolicy.CONTINUE_ON_ERROR
        elif data.get("errorPolicy"):
            definition["error_policy"] = data["errorPolicy"]
        if data.get("timeBudgetSeconds") is not None:
            definition["time_budget_seconds"] = data["timeBudgetSeconds"]

        return cls.model_validate(definition)
