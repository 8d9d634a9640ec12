"""
API request and response schemas.
What it defines:
- Single planning step payload (history + step index + vision flags)
- Full task run payload
- Trace event view

And, the main purpose:
Ensure structured communication between client and server.
"""


from typing import Optional

from pydantic import BaseModel, Field

from replyzy.agent.messages import Message


class PlanStepRequest(BaseModel):
    task_id: Optional[str] = None
    n_steps: int = Field(0, ge=0, description="Current step index; 0 enables server-first planning")
    messages: list[Message] = Field(default_factory=list, description="Ordered history, system prompt first")
    use_vision: bool = False
    use_vision_for_planner: bool = False


class RunTaskRequest(BaseModel):
    task: str = Field(..., min_length=1)
    max_steps: Optional[int] = Field(None, ge=1)


class TraceEventView(BaseModel):
    id: int
    step: int
    actor: str
    state: str
    details: str
    timestamp: float
