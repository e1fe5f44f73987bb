from pydantic import BaseModel, Field
from datetime import date
from typing import List, Literal, Optional
from .ptl import CoachingPlan, PtlReport

class HomeOfficeInfo(BaseModel):
    status: str = ""
    notes: str = ""
    approval_date: Optional[str] = None
    days_per_week: Optional[int] = None

class LeaveLogEntry(BaseModel):
    date: str  # ISO string
    type: Literal["Medical", "Permission", "Vacation"]
    reason: str = ""
    is_billable: bool = False  # approved by the client
    days: float = 1

class ActionItem(BaseModel):
    id: str
    text: str
    completed: bool = False

class CoachingSession(BaseModel):
    id: str
    session_date: str  # ISO string
    summary: str
    leader_actions: List[ActionItem] = []
    employee_actions: List[ActionItem] = []

class CoachingSessionCreate(CoachingPlan):
    """A coaching plan, as generated or as written by hand, to record as a session."""
    summary: str = Field(..., min_length=1)
    session_date: Optional[date] = None

class TeamMember(BaseModel):
    id: str
    name: str
    role: str = ""
    email: str = ""
    department: str = ""
    # Kept as a raw string: imported data may carry empty or malformed dates
    hire_date: Optional[str] = None
    home_office: HomeOfficeInfo = Field(default_factory=HomeOfficeInfo)
    kpi_group_id: Optional[str] = None
    leave_log: List[LeaveLogEntry] = []

    # Derived from the KPI ledger, recomputed on every catalog/ledger change
    performance_score: int = 0
    previous_performance_score: int = 0
    rank: int = 0
    previous_rank: int = 0
    rank_history: List[int] = []

    ptl_report: Optional[PtlReport] = None
    coaching_sessions: List[CoachingSession] = []

class TeamMemberNotesUpdate(BaseModel):
    notes: str

class LeaderboardEntry(BaseModel):
    rank: int
    team_member_id: str
    name: str
    performance_score: int
    previous_performance_score: int
    score_change: int
    previous_rank: int
    rank_change: int  # positive = moved up
    rank_history: List[int]
