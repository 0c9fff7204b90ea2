"""
Agent performance analytics schemas
"""
from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID
from enum import Enum

from .base import BaseSchema


class PeriodType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class PerformanceSortField(str, Enum):
    OVERALL_SCORE = "overall_score"
    CUSTOMER_SERVICE = "customer_service"
    PRODUCT_KNOWLEDGE = "product_knowledge"
    PROCESS_EFFICIENCY = "process_efficiency"
    PROBLEM_SOLVING = "problem_solving"
    CALL_COUNT = "call_count"
    LAST_NAME = "last_name"


class AverageScores(BaseModel):
    customer_service: Optional[float] = None
    product_knowledge: Optional[float] = None
    process_efficiency: Optional[float] = None
    problem_solving: Optional[float] = None
    overall_score: Optional[float] = None


class PeriodSummary(BaseModel):
    start_date: datetime
    end_date: datetime
    call_count: int = 0
    average_scores: AverageScores = AverageScores()
    avg_call_duration: Optional[float] = None
    avg_talk_time: Optional[float] = None
    avg_waiting_time: Optional[float] = None


class HistoricalPeriod(PeriodSummary):
    period_name: str
    common_strengths: List[str] = []
    common_areas_for_improvement: List[str] = []


class PerformanceMetrics(BaseModel):
    current_period: Optional[PeriodSummary] = None
    historical: List[HistoricalPeriod] = []
    last_scorecard: Optional[Dict[str, Optional[float]]] = None
    last_updated: Optional[datetime] = None


class UpdateMetricsRequest(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    save_historical: bool = False
    period_name: Optional[str] = None


class UpdateAllResponse(BaseModel):
    success: bool
    agents_updated: int
    agents_failed: int = 0
    agents_skipped: int = 0


class AgentPerformanceEntry(BaseSchema):
    id: UUID
    external_id: str
    name: str
    email: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    status: str
    performance_metrics: PerformanceMetrics


class TrendPoint(BaseModel):
    period: str
    period_key: str
    period_start: datetime
    period_end: datetime
    call_count: int
    customer_service: Optional[float] = None
    product_knowledge: Optional[float] = None
    process_efficiency: Optional[float] = None
    problem_solving: Optional[float] = None
    overall_score: Optional[float] = None


class PerformanceTrends(BaseSchema):
    agent_id: UUID
    period_type: PeriodType
    trends: List[TrendPoint]


class RebuildResult(BaseModel):
    total_processed: int
    success_count: int
    error_count: int
    skipped_count: int


class JobRunResponse(BaseModel):
    job: str
    started: bool
    result: Optional[dict] = None
