"""
Engine warnings and errors.

Warnings never abort a run: they are logged and collected into the report's
diagnostics. Errors abort the current step, and under the fail-fast policy
the whole run.
"""

from typing import Optional


class WorkflowWarning(UserWarning):
    """Base class for non-fatal conditions collected during a run"""

    code = "WORKFLOW_WARNING"

    def __init__(self, message: str, step: Optional[str] = None):
        self.message = message
        self.step = step
        super().__init__(message)


class UnresolvedReferenceWarning(WorkflowWarning):
    """A symbolic reference pointed at a missing key or field"""

    code = "UNRESOLVED_REFERENCE"

    def __init__(self, reference: str, missing_part: str, step: Optional[str] = None):
        self.reference = reference
        self.missing_part = missing_part
        super().__init__(
            f"Could not resolve path \"{reference}\" at part \"{missing_part}\"",
            step=step
        )


class MissingOutputKeyWarning(WorkflowWarning):
    """A step has no output key, so later steps cannot see its result"""

    code = "MISSING_OUTPUT_KEY"

    def __init__(self, step: str):
        super().__init__(
            f"Step '{step}' has no outputKey; its result is unreachable by later steps",
            step=step
        )


class InvocationError(Exception):
    """Raised when an agent invocation fails"""

    def __init__(
        self,
        agent_id: str,
        message: str,
        original_error: Exception = None,
        step: Optional[str] = None
    ):
        self.agent_id = agent_id
        self.message = message
        self.original_error = original_error
        self.step = step
        super().__init__(f"Agent '{agent_id}' failed: {message}")


class CancellationError(Exception):
    """Raised between steps when a run is cancelled or out of time"""

    def __init__(self, reason: str, timed_out: bool = False):
        self.reason = reason
        self.timed_out = timed_out
        super().__init__(reason)
