"""
Pydantic models for request/response validation
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any


# ===== Employee Models =====

class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    salary: float = Field(..., ge=0)


class EmployeeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    position: Optional[str] = Field(None, min_length=1)
    salary: Optional[float] = Field(None, ge=0)

    def provided_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ===== Chat Models =====

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)
    session_id: str = "default"


class ChatResponse(BaseModel):
    success: bool = True
    reply: str
    mutated: bool
    state: str
    rounds: int
    session_id: str


class NoteRequest(BaseModel):
    event: str = Field(..., min_length=1, max_length=2000)
    session_id: str = "default"


class MemoryResponse(BaseModel):
    session_id: str
    turns: List[Dict[str, Any]]
    count: int
