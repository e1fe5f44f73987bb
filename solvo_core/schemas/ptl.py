from pydantic import AliasChoices, BaseModel, Field
from typing import List, Literal, Optional, Union

Impact = Literal["Positive", "Neutral", "Negative"]
RiskLevel = Literal["Low", "Medium", "High", "Critical"]
FactorName = Literal[
    "Performance",
    "Trend",
    "Tenure",
    "Workload",
    "Client Health",
    "Medical Leaves (YTD)",
    "Permissions (YTD)",
    "Status Notes",
]

class PtlFactor(BaseModel):
    name: FactorName
    value: Union[int, float, str]
    impact: Impact
    description: str

class PtlReport(BaseModel):
    risk_score: int = Field(..., ge=0, le=100)  # lower is better
    risk_level: RiskLevel
    factors: List[PtlFactor]
    summary: str = ""

class PtlAnalysis(BaseModel):
    analysis: str
    mitigation: List[str] = []

class CoachingPlan(BaseModel):
    summary: str
    # The AI endpoint answers in camelCase
    leader_actions: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("leader_actions", "leaderActions")
    )
    employee_actions: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("employee_actions", "employeeActions")
    )

class PtlAssessmentResponse(BaseModel):
    team_member_id: str
    report: PtlReport
    analysis: Optional[PtlAnalysis] = None
    narrative_status: Literal["ok", "not_configured", "error"]
    narrative_error: Optional[str] = None
