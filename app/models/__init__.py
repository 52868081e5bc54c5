from app.models.agent_job import AgentJob, JobType
from app.models.agent_log import AgentLog
from app.models.base import Base
from app.models.contact import Contact, ContactInteraction
from app.models.draft import AgentDraft
from app.models.job_run import AgentJobRun, JobRunStatus
from app.models.notification import Notification
from app.models.proposal import Proposal
from app.models.research import ResearchFinding
from app.models.rfp import Rfp
from app.models.task import Task, TaskStatus
from app.models.workspace import Workspace

__all__ = [
    "Base",
    "Workspace",
    "Task",
    "TaskStatus",
    "Notification",
    "Contact",
    "ContactInteraction",
    "Rfp",
    "Proposal",
    "AgentDraft",
    "ResearchFinding",
    "AgentJob",
    "JobType",
    "AgentJobRun",
    "JobRunStatus",
    "AgentLog",
]
