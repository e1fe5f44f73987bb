from enum import Enum
from pydantic import BaseModel
from typing import List

class ClientStatus(str, Enum):
    HEALTHY = "Healthy"
    AT_RISK = "At-Risk"
    CRITICAL = "Critical"

class PulseLogEntry(BaseModel):
    id: str
    date: str  # ISO string
    type: str  # Meeting, Call, Email, Note
    notes: str

class Client(BaseModel):
    id: str
    name: str
    status: ClientStatus = ClientStatus.HEALTHY
    notes: str = ""
    assigned_team_members: List[str] = []
    pulse_log: List[PulseLogEntry] = []

class ShoutOut(BaseModel):
    id: str
    from_name: str
    to_name: str
    message: str
    date: str  # ISO string
