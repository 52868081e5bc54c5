from app.schemas.actions import (
    Action,
    ActionBatchRequest,
    ActionBatchResponse,
    ActionKindResponse,
    ActionResult,
)
from app.schemas.jobs import AgentLogResponse, JobRunSummary, RunJobsResponse
from app.schemas.llm import Decision, FallbackSpec, ProposalResult

__all__ = [
    "Action",
    "ActionResult",
    "ActionBatchRequest",
    "ActionBatchResponse",
    "ActionKindResponse",
    "Decision",
    "FallbackSpec",
    "ProposalResult",
    "JobRunSummary",
    "RunJobsResponse",
    "AgentLogResponse",
]
