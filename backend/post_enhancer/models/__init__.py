# Namespace for Pydantic request models and in-memory job records.
from .job import JobFailure, JobResult, JobSuccess, PendingJob, TaskState, TaskStatus
from .schemas import (
    EnhanceAccepted,
    EnhancementReport,
    EnhanceRequest,
    GenerateImageRequest,
    GenerateImageResponse,
    Video,
)

__all__ = [
    "EnhanceAccepted",
    "EnhancementReport",
    "EnhanceRequest",
    "GenerateImageRequest",
    "GenerateImageResponse",
    "JobFailure",
    "JobResult",
    "JobSuccess",
    "PendingJob",
    "TaskState",
    "TaskStatus",
    "Video",
]
