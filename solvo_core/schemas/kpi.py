from pydantic import BaseModel, Field
from typing import List, Literal, Optional

KpiType = Literal["number", "percentage"]

class KpiDefinition(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    type: KpiType = "number"
    goal: float = Field(..., ge=0)
    points: float = Field(..., ge=0)  # share of 100 awarded for meeting the goal

class KpiGroup(BaseModel):
    id: str
    name: str
    role: str = ""
    kpis: List[KpiDefinition] = []

class KpiProgress(BaseModel):
    id: str
    team_member_id: str
    kpi_definition_id: str
    actual: float = 0

class KpiProgressUpdate(BaseModel):
    team_member_id: str
    kpi_definition_id: str
    actual: float = Field(..., ge=0)

class KpiLedgerItem(BaseModel):
    kpi_definition_id: str
    name: str
    type: KpiType
    goal: float
    points: float
    actual: float
    lower_is_better: bool
    achievement_ratio: float
    points_earned: float

class KpiLedgerResponse(BaseModel):
    team_member_id: str
    kpi_group_id: Optional[str]
    performance_score: int
    kpis: List[KpiLedgerItem]
