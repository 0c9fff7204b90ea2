"""
Transcript, analysis and call type schemas
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID
from enum import Enum

from .base import BaseSchema, Pagination


class TranscriptSource(str, Enum):
    WEB = "web"
    API = "api"


class CallDirection(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


def _collect_extra(cls, data: Any) -> Any:
    """Move keys the model does not declare into its ``extra`` map"""
    if not isinstance(data, dict):
        return data
    known = set(cls.model_fields)
    extra = dict(data.get("extra") or {})
    cleaned = {}
    for key, value in data.items():
        if key in known:
            cleaned[key] = value
        else:
            extra[key] = value
    cleaned["extra"] = extra
    return cleaned


class Scorecard(BaseModel):
    customer_service: Optional[float] = Field(None, ge=0, le=10)
    product_knowledge: Optional[float] = Field(None, ge=0, le=10)
    process_efficiency: Optional[float] = Field(None, ge=0, le=10)
    problem_solving: Optional[float] = Field(None, ge=0, le=10)
    overall_score: Optional[float] = Field(None, ge=0, le=10)


class AgentPerformanceNotes(BaseModel):
    strengths: List[str] = []
    areas_for_improvement: List[str] = []


class CallSummary(BaseModel):
    brief_summary: Optional[str] = None
    customer_request: Optional[str] = None
    resolution: Optional[str] = None
    extra: Dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def collect_extra(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"brief_summary": data}
        return _collect_extra(cls, data)


class TranscriptAnalysis(BaseModel):
    """Analysis attached to a transcript; unknown keys are kept in ``extra``"""
    call_summary: Optional[CallSummary] = None
    agent_performance: AgentPerformanceNotes = AgentPerformanceNotes()
    improvement_suggestions: List[str] = []
    scorecard: Optional[Scorecard] = None
    extra: Dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def collect_extra(cls, data: Any) -> Any:
        return _collect_extra(cls, data)


class CallDetails(BaseModel):
    duration: Optional[float] = Field(None, ge=0)
    talk_time: Optional[float] = Field(None, ge=0)
    waiting_time: Optional[float] = Field(None, ge=0)
    direction: Optional[CallDirection] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


# Create schemas
class TranscriptCreate(BaseModel):
    raw_transcript: str
    call_type: Optional[str] = "auto"
    agent_id: Optional[UUID] = None
    organization_id: Optional[UUID] = Field(None, description="Only honoured for cross-tenant callers")
    analysis: Optional[TranscriptAnalysis] = None
    call_details: Optional[CallDetails] = None
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    @field_validator("raw_transcript")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Transcript text is required")
        return value


class AnalysisUpdate(BaseModel):
    analysis: TranscriptAnalysis


# Response schemas
class TranscriptListItem(BaseSchema):
    id: UUID
    organization_id: UUID
    agent_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    call_type: str
    source: str
    analysis: Optional[Dict[str, Any]] = None
    call_details: CallDetails
    created_at: datetime


class TranscriptResponse(TranscriptListItem):
    raw_transcript: str
    metadata: Dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def read_metadata(cls, data: Any) -> Any:
        if hasattr(data, "transcript_metadata"):
            return {
                **{name: getattr(data, name, None) for name in cls.model_fields if name != "metadata"},
                "metadata": data.transcript_metadata or {},
            }
        return data


class TranscriptListResponse(BaseSchema):
    data: List[TranscriptListItem]
    pagination: Pagination


class TimelineEntry(BaseModel):
    date: str
    count: int
    avg_customer_service: Optional[float] = None
    avg_product_knowledge: Optional[float] = None
    avg_process_efficiency: Optional[float] = None
    avg_problem_solving: Optional[float] = None
    avg_overall_score: Optional[float] = None


class CallTypeCount(BaseModel):
    call_type: str
    count: int


class TranscriptAnalyticsSummary(BaseModel):
    timeline: List[TimelineEntry]
    call_types: List[CallTypeCount]
    start_date: datetime
    end_date: datetime


# Call types
class CallTypeCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    prompt_template: str = Field(..., min_length=1)
    json_structure: Dict[str, Any] = {}
    is_global: bool = False

    @field_validator("code")
    @classmethod
    def lowercase_code(cls, value: str) -> str:
        return value.strip().lower()


class CallTypeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    prompt_template: Optional[str] = None
    json_structure: Optional[Dict[str, Any]] = None
    active: Optional[bool] = None


class CallTypeResponse(BaseSchema):
    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    organization_id: Optional[UUID] = None
    is_global: bool
    prompt_template: str
    json_structure: Optional[Dict[str, Any]] = None
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
