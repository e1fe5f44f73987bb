from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

class ChatTurn(BaseModel):
    role: Literal["user", "model"]
    text: str

class AssistantRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    history: List[ChatTurn] = []

class AssistantResponse(BaseModel):
    type: Literal["text", "tool_call", "error"]
    text: str
    tool: Optional[str] = None
    args: Optional[Dict[str, Any]] = None
