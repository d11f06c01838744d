"""
Tests for workflow definition parsing.
"""

import pytest
from pydantic import ValidationError

from agent_workflow import config
from agent_workflow.engine import LiteralValue, Reference
from agent_workflow.models import (
    ErrorPolicy,
    LoopTerminationType,
    WorkflowDefinition,
    WorkflowStep,
    WorkflowType,
)


class TestWorkflowStep:
    """Test step validation."""

    def test_camel_and_snake_case(self):
        """Test both configuration and Python field names are accepted."""
        camel = WorkflowStep.model_validate({"agentId": "a", "outputKey": "out"})
        snake = WorkflowStep(agent_id="a", output_key="out")
        assert camel == snake

    def test_agent_id_required(self):
        """Test a step without an agent id is rejected."""
        with pytest.raises(ValidationError):
            WorkflowStep.model_validate({"outputKey": "out"})
        with pytest.raises(ValidationError):
            WorkflowStep(agent_id="")

    def test_blank_output_key_is_none(self):
        """Test an empty output key counts as missing."""
        assert WorkflowStep(agent_id="a", output_key="  ").output_key is None

    def test_input_mapping_compiled(self):
        """Test the input mapping is compiled at validation time."""
        step = WorkflowStep(agent_id="a", input_mapping={"x": "$prev.result", "y": "lit"})
        assert step.input_mapping == {"x": Reference(("prev", "result")), "y": LiteralValue("lit")}

    def test_serialization_restores_json(self):
        """Test dumping a step gives back the configuration JSON."""
        raw = {"agentId": "a", "inputMapping": {"x": "$prev.result", "cost": "$$3"}, "outputKey": "o"}
        dumped = WorkflowStep.model_validate(raw).model_dump(by_alias=True, exclude_none=True)
        assert dumped == raw

    def test_frozen(self):
        """Test steps cannot be modified after construction."""
        step = WorkflowStep(agent_id="a")
        with pytest.raises(ValidationError):
            step.agent_id = "b"

    def test_identifier(self):
        """Test the identifier prefers the step name."""
        assert WorkflowStep(agent_id="a", name="Check stock").identifier == "Check stock"
        assert WorkflowStep(agent_id="a").identifier == "a"


class TestWorkflowDefinition:
    """Test definition parsing in canonical and builder shapes."""

    def test_defaults(self):
        """Test an empty definition is a sequential fail-fast workflow."""
        definition = WorkflowDefinition()
        assert definition.workflow_type == WorkflowType.SEQUENTIAL
        assert definition.error_policy == ErrorPolicy.FAIL_FAST
        assert definition.loop.max_iterations == config.DEFAULT_LOOP_MAX_ITERATIONS
        assert definition.steps == []

    def test_unknown_workflow_type_rejected(self):
        """Test an unsupported workflow type fails validation."""
        with pytest.raises(ValidationError):
            WorkflowDefinition.model_validate({"workflowType": "mesh"})

    def test_invalid_max_iterations_rejected(self):
        """Test max iterations must be at least one."""
        with pytest.raises(ValidationError):
            WorkflowDefinition.model_validate({"loop": {"maxIterations": 0}})

    def test_canonical_shape_via_from_config(self):
        """Test from_config passes canonical definitions straight through."""
        data = {
            "goal": "g",
            "workflowType": "parallel",
            "steps": [{"agentId": "a", "group": "one"}],
            "errorPolicy": "continue_on_error",
        }
        definition = WorkflowDefinition.from_config(data)
        assert definition.workflow_type == WorkflowType.PARALLEL
        assert definition.continue_on_error
        assert definition.steps[0].group == "one"

    def test_builder_shape(self):
        """Test the agent builder configuration shape is mapped onto the model."""
        data = {
            "agentGoal": "Process an order",
            "workflowType": "loop",
            "workflowSteps": [
                {"agentId": "inventory-agent", "inputMapping": {"item": "sku1"}, "outputKey": "inventory"},
            ],
            "loopMaxIterations": 4,
            "loopTerminationConditionType": "tool",
            "loopExitToolName": "submit",
            "loopStateKey": "inventory.result.done",
            "loopExitStateValue": True,
            "continueOnError": True,
        }

        definition = WorkflowDefinition.from_config(data)

        assert definition.goal == "Process an order"
        assert definition.workflow_type == WorkflowType.LOOP
        assert definition.steps[0].agent_id == "inventory-agent"
        assert definition.loop.max_iterations == 4
        assert definition.loop.termination_condition_type == LoopTerminationType.TOOL
        assert definition.loop.exit_tool_name == "submit"
        assert definition.loop.exit_state_key == "inventory.result.done"
        assert definition.loop.exit_state_value is True
        assert definition.error_policy == ErrorPolicy.CONTINUE_ON_ERROR

    def test_builder_termination_conditions_max_iterations(self):
        """Test terminationConditions.maxIterations is used when loopMaxIterations is absent."""
        data = {"agentGoal": "g", "workflowType": "loop", "workflowSteps": [], "terminationConditions": {"maxIterations": 7}}
        assert WorkflowDefinition.from_config(data).loop.max_iterations == 7

    def test_builder_shape_invalid_step(self):
        """Test invalid builder steps surface as validation errors."""
        with pytest.raises(ValidationError):
            WorkflowDefinition.from_config({"agentGoal": "g", "workflowSteps": [{"outputKey": "x"}]})


class TestLoopSettings:
    """Test which loop checks are active."""

    @pytest.mark.parametrize("raw,expected", [
        ("tool_success", LoopTerminationType.TOOL),
        ("state_change", LoopTerminationType.STATE),
        ("subagent_signal", None),
        ("none", LoopTerminationType.NONE),
        ("", None),
    ])
    def test_termination_type_synonyms(self, raw, expected):
        """Test builder synonyms normalize to the canonical names."""
        definition = WorkflowDefinition.model_validate({"loop": {"terminationConditionType": raw}})
        assert definition.loop.termination_condition_type == expected

    def test_none_disables_exit_checks(self):
        """Test termination type none leaves only max iterations."""
        definition = WorkflowDefinition.model_validate({"loop": {
            "terminationConditionType": "none",
            "exitToolName": "t",
            "exitStateKey": "k",
            "exitStateValue": 1,
        }})
        assert not definition.loop.checks_exit_tool
        assert not definition.loop.checks_exit_state

    def test_unset_type_checks_everything_configured(self):
        """Test both checks are active when the type is unset."""
        definition = WorkflowDefinition.model_validate({"loop": {
            "exitToolName": "t",
            "exitStateKey": "k",
            "exitStateValue": 1,
        }})
        assert definition.loop.checks_exit_tool
        assert definition.loop.checks_exit_state

    def test_builder_subagent_signal(self):
        """Test the builder's subagent_signal type keeps both exit checks active."""
        data = {
            "agentGoal": "loop",
            "workflowType": "loop",
            "workflowSteps": [{"agentId": "worker", "outputKey": "work"}],
            "loopTerminationConditionType": "subagent_signal",
            "loopExitToolName": "exit_loop",
            "loopExitStateKey": "work.result.done",
            "loopExitStateValue": True,
        }

        loop = WorkflowDefinition.from_config(data).loop

        assert loop.termination_condition_type is None
        assert loop.checks_exit_tool
        assert loop.checks_exit_state
