"""Exception types for the orchestration engine.

Errors are recovered as close to their source as possible: `ActionError`
becomes a failed ActionResult, job-level errors become a failed run, and only
`SchedulerError` aborts a whole scheduler pass.
"""

UNKNOWN_ACTION = "unknown_action"
INVALID_PARAMS = "invalid_params"
NOT_FOUND = "not_found"
STORAGE_ERROR = "storage_error"
EXECUTION_ERROR = "execution_error"


class OrchestrationError(Exception):
    """Base class for engine errors."""


class ActionError(OrchestrationError):
    """A single action could not be dispatched."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class ProposerError(OrchestrationError):
    """The external generation service could not be called."""


class UnknownJobTypeError(OrchestrationError):
    """A job references a job type with no registered handler."""

    def __init__(self, job_type: str) -> None:
        super().__init__(f"Unknown job type: {job_type}")
        self.job_type = job_type


class SchedulerError(OrchestrationError):
    """The scheduler could not load due jobs; the whole pass is aborted."""


class JobNotFoundError(OrchestrationError):
    """An on-demand run referenced a job id that doesn't exist."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id
