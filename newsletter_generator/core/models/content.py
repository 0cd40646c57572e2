"""
Newsletter content models.

This module defines the content plan produced by the planner, the
sections produced by the section generator and the final document
written to the job once generation succeeds.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SectionType(str, Enum):
    """Kinds of newsletter sections."""
    HERO = "hero"
    ARTICLE = "article"
    EVENTS = "events"
    KNOWLEDGE = "knowledge"
    SUMMARY = "summary"


class SectionPlan(BaseModel):
    """Planned stub for a single section."""

    type: SectionType = Field(default=SectionType.ARTICLE, description="Section type")
    title: str = Field(..., min_length=1, description="Planned section title")
    description: str = Field(default="", description="What the section should achieve")

    @field_validator('type', mode='before')
    @classmethod
    def coerce_unknown_type(cls, v):
        """Unknown section types are treated as articles."""
        if v in SectionType._value2member_map_ or isinstance(v, SectionType):
            return v
        return SectionType.ARTICLE

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        """Titles must carry visible text."""
        if not v.strip():
            raise ValueError('section title must not be blank')
        return v.strip()

    model_config = ConfigDict(use_enum_values=True)


class ContentPlan(BaseModel):
    """Structured outline produced before any section body is written."""

    title: str = Field(default="", description="Newsletter title")
    subtitle: str = Field(default="", description="Newsletter subtitle")
    sections: List[SectionPlan] = Field(default_factory=list, description="Ordered section stubs")
    tone: str = Field(default="conversational", description="Overall writing tone")
    target_audience: str = Field(default="", description="Intended readers")
    content_approach: str = Field(default="informative", description="Content approach")
    fallback_used: bool = Field(default=False, description="Plan came from the local heuristic")

    model_config = ConfigDict(use_enum_values=True)


class KnowledgeItem(BaseModel):
    """Organization-owned reference content."""

    id: Optional[str] = None
    title: str = Field(default="")
    content: str = Field(default="")
    type: Optional[str] = None


class EventItem(BaseModel):
    """Upcoming organization event."""

    id: Optional[str] = None
    title: str = Field(default="")
    date_start: Optional[datetime] = None
    location: Optional[str] = None
    relevance_score: Optional[float] = None

    def describe(self) -> str:
        """One-line description used in section prompts."""
        date_text = self.date_start.strftime('%Y-%m-%d') if self.date_start else 'TBD'
        return f"{self.title} - {date_text} at {self.location or 'TBD'}"


class SectionMetadata(BaseModel):
    """Generation metadata attached to each section."""

    generated_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    fallback_used: Optional[bool] = None
    error: Optional[str] = None
    section_plan: Optional[SectionPlan] = None

    # Brand integration
    brand_applied: Optional[bool] = None
    brand_template: Optional[str] = None
    brand_colors: Optional[Dict[str, str]] = None
    footer_text: Optional[str] = None


class Section(BaseModel):
    """One generated newsletter section."""

    id: str = Field(..., description="Section identifier")
    type: SectionType = Field(default=SectionType.ARTICLE)
    title: str = Field(default="")
    content: str = Field(default="")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    metadata: SectionMetadata = Field(default_factory=SectionMetadata)

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class DocumentHeader(BaseModel):
    """Final document header."""

    title: str
    subtitle: str
    date: str
    logo_url: Optional[str] = Field("", alias="logoUrl")

    model_config = ConfigDict(populate_by_name=True)


class FooterLink(BaseModel):
    """Footer link."""

    text: str
    url: str = "#"


class DocumentFooter(BaseModel):
    """Final document footer."""

    text: str
    links: List[FooterLink] = Field(default_factory=list)


class FinalDocument(BaseModel):
    """Assembled newsletter written once to the job on success."""

    header: DocumentHeader
    sections: List[Section] = Field(default_factory=list)
    footer: DocumentFooter

    model_config = ConfigDict(frozen=True)

    def to_content(self) -> Dict[str, Any]:
        """Serialize to the JSON structure stored on the job record."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
