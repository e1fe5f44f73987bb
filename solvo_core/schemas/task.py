from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional

class TaskStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    OVERDUE = "Overdue"
    COMPLETED = "Completed"

class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"

class Task(BaseModel):
    id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[str] = None  # ISO string
    assigned_to: Optional[str] = None
    client_id: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM

class TaskUpdateStatus(BaseModel):
    status: TaskStatus
