"""Domain exceptions.

Every error the enhancement pipeline raises on purpose derives from
:class:`EnhancerError`, so the orchestrator and the FastAPI exception handler
can map them in one place.
"""

from __future__ import annotations


class EnhancerError(Exception):
    """Domain-level base exception so we can map to JSON responses easily."""

    status_code: int = 500

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class SubmissionError(EnhancerError):
    """The image generator rejected the task or returned no task id."""


class MalformedCallback(EnhancerError):
    """A webhook reported success but its payload holds no usable URL."""


class GenerationFailed(EnhancerError):
    """The image generator reported that the task failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"kie.ai: generation failed - {reason}")
        self.reason = reason


class JobTimeout(EnhancerError):
    """No terminal state was observed within the waiting budget."""

    status_code = 504


class WaiterShutdown(EnhancerError):
    """The waiter was closed while the job was still pending."""

    status_code = 503


class UploadError(EnhancerError):
    """The CMS rejected a media upload."""

    status_code = 502


class ImageProcessingError(EnhancerError):
    """Downloaded bytes could not be decoded or re-encoded as an image."""


class AuthError(EnhancerError):
    """Shared-secret header missing or wrong."""

    status_code = 401

    def __init__(self, detail: str = "unauthorized") -> None:
        super().__init__(detail)
