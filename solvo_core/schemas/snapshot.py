from pydantic import BaseModel, Field
from datetime import date
from typing import List
from .kpi import KpiType

class KpiSnapshot(BaseModel):
    name: str
    type: KpiType
    goal: float
    points: float
    actual: float

class WeeklyPerformanceSnapshot(BaseModel):
    team_member_id: str
    week_of: date  # Monday of the archived week
    performance_score: int
    kpi_snapshots: List[KpiSnapshot] = []

class HistoricalKpiActual(BaseModel):
    kpi_definition_id: str
    actual: float = Field(..., ge=0)

class HistoricalSnapshotCreate(BaseModel):
    team_member_id: str
    week_of: date
    kpis: List[HistoricalKpiActual] = Field(default_factory=list)

class EndWeekResponse(BaseModel):
    week_of: date
    snapshots: List[WeeklyPerformanceSnapshot]

class PerformanceSummaryResponse(BaseModel):
    team_member_id: str
    summary: str
