"""
Newsletter API schemas.

Response bodies for the job intake and polling endpoints.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from ...core.models.job import GenerationJob


class NewsletterCreateResponse(BaseModel):
    """Response returned once a job is queued."""

    job_id: str = Field(..., description="Newsletter job identifier")
    status: str = Field(default="generating", description="Initial job status")
    message: str = Field(default="Newsletter generation started", description="Human readable message")


class NewsletterStatusResponse(BaseModel):
    """Polling view of a generation job."""

    job_id: str = Field(..., description="Newsletter job identifier")
    status: str = Field(..., description="generating, ready or failed")
    progress: int = Field(..., ge=0, le=100, description="Progress percentage")
    title: Optional[str] = Field(None, description="Newsletter title")
    logs: List[str] = Field(default_factory=list, description="Timestamped log lines")
    content: Optional[Dict[str, Any]] = Field(None, description="Final document once ready")

    @classmethod
    def from_job(cls, job: GenerationJob) -> 'NewsletterStatusResponse':
        """Create the response from a job record."""
        return cls(
            job_id=job.id,
            status=job.status,
            progress=job.progress,
            title=job.title,
            logs=job.logs,
            content=job.content
        )
