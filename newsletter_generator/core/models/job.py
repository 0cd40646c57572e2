"""
Generation job data models and schemas.

This module defines the job creation request, the job lifecycle
states and the persisted job record polled by clients.
"""

from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerationMode(str, Enum):
    """How much user input drives the generation."""
    QUICK = "quick"
    DETAILED = "detailed"
    CUSTOM = "custom"


class SectionLength(str, Enum):
    """Target length of every generated section."""
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class ImageSource(str, Enum):
    """Where section images come from."""
    AI = "ai"
    WEB = "web"


class ImagePlacement(str, Enum):
    """Which sections receive an image."""
    ALL = "all"
    HEADER = "header"


class JobStatus(str, Enum):
    """Generation job status."""
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.READY, JobStatus.FAILED)


class GenerationRequest(BaseModel):
    """Request model for newsletter generation."""

    organization_id: str = Field(..., min_length=1, description="Owning organization")
    topic: str = Field(..., min_length=1, max_length=500, description="Newsletter topic")
    mode: GenerationMode = Field(..., description="Generation mode")
    instructions: Optional[str] = Field(None, max_length=5000, description="Free-form user instructions")
    skip_research: bool = Field(default=False, description="Skip the web research stage")

    num_sections: int = Field(default=4, ge=1, le=12, description="Requested section count")
    section_length: SectionLength = Field(default=SectionLength.MEDIUM, description="Section length")

    include_images: bool = Field(default=False, description="Attach images to sections")
    image_source: ImageSource = Field(default=ImageSource.WEB, description="Image source")
    image_placement: ImagePlacement = Field(default=ImagePlacement.HEADER, description="Image placement")

    include_events: bool = Field(..., description="Use upcoming organization events")
    include_knowledge: bool = Field(..., description="Use the organization knowledge base")

    # Presets
    tone: Optional[str] = Field(None, description="Tone preset id")
    style: Optional[str] = Field(None, description="Style preset id")
    audience: Optional[str] = Field(None, description="Audience preset id")
    context: Optional[str] = Field(None, description="Context preset id")
    guide: Optional[str] = Field(None, description="Structure preset id")

    @field_validator('topic')
    @classmethod
    def validate_topic(cls, v):
        """Reject whitespace-only topics."""
        if not v.strip():
            raise ValueError('topic must not be blank')
        return v.strip()

    model_config = ConfigDict(use_enum_values=True)


class GenerationJob(BaseModel):
    """A persisted generation job as seen by polling clients."""

    id: str = Field(..., description="Job identifier")
    organization_id: Optional[str] = Field(None, description="Owning organization")
    title: Optional[str] = Field(None, description="Newsletter title")
    status: JobStatus = Field(default=JobStatus.GENERATING, description="Job status")
    progress: int = Field(default=0, ge=0, le=100, description="Progress percentage")
    logs: List[str] = Field(default_factory=list, description="Timestamped log lines")
    content: Optional[Dict[str, Any]] = Field(None, description="Final document once ready")

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'GenerationJob':
        """Build a job from a ``newsletters`` row."""
        content = record.get('content') or None
        return cls(
            id=str(record['id']),
            organization_id=record.get('organization_id'),
            title=record.get('title'),
            status=record.get('status') or JobStatus.GENERATING,
            progress=record.get('generation_progress') or 0,
            logs=record.get('generation_logs') or [],
            content=content
        )
