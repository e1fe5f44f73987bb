from pydantic import BaseModel, model_validator
from datetime import datetime
from typing import List
from .client import Client, ShoutOut
from .kpi import KpiGroup, KpiProgress
from .snapshot import WeeklyPerformanceSnapshot
from .task import Task
from .team import TeamMember

class AppData(BaseModel):
    """Every persisted collection of one user. Each field is stored under its own key."""
    tasks: List[Task] = []
    clients: List[Client] = []
    team_members: List[TeamMember] = []
    kpi_groups: List[KpiGroup] = []
    kpi_progress: List[KpiProgress] = []
    weekly_snapshots: List[WeeklyPerformanceSnapshot] = []
    shout_outs: List[ShoutOut] = []

COLLECTIONS = tuple(AppData.model_fields)

class DataImportRequest(AppData):
    @model_validator(mode="before")
    @classmethod
    def require_every_collection(cls, data):
        if isinstance(data, dict):
            missing = [name for name in COLLECTIONS if name not in data]
            if missing:
                raise ValueError(f"Invalid or incomplete data file. Missing: {', '.join(missing)}")
        return data

class DataExportResponse(BaseModel):
    file_name: str
    exported_at: datetime
    data: AppData

class DataImportResponse(BaseModel):
    message: str
    backup: DataExportResponse
