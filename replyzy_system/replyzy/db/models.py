"""
Database table definitions and it stores:
- Trace events (every agent progress event)
- LLM providers
- Agent -> model assignments
Main purpose:
Define persistent data structure.
"""



from sqlalchemy import String, Text, Integer, DateTime, Float
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from replyzy.db.base import Base


class TraceEvent(Base):
    __tablename__ = "trace_events"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[str] = mapped_column(String, index=True)
    step: Mapped[int] = mapped_column(Integer, default=0)
    actor: Mapped[str] = mapped_column(String)  # system|user|planner|navigator
    state: Mapped[str] = mapped_column(String)  # task.*|step.*|act.*
    details: Mapped[str] = mapped_column(Text, default="")
    timestamp: Mapped[float] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class LLMProvider(Base):
    __tablename__ = "llm_providers"
    id: Mapped[str] = mapped_column(String, primary_key=True)  # e.g. "replyzy"
    name: Mapped[str] = mapped_column(String)
    type: Mapped[str] = mapped_column(String)  # custom_openai|openai|...
    api_key: Mapped[str] = mapped_column(String, default="")
    base_url: Mapped[str] = mapped_column(String, default="")
    model_names: Mapped[str] = mapped_column(Text, default="[]")  # JSON list
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class AgentModel(Base):
    __tablename__ = "agent_models"
    agent_name: Mapped[str] = mapped_column(String, primary_key=True)  # planner|navigator
    provider: Mapped[str] = mapped_column(String)
    model_name: Mapped[str] = mapped_column(String)
    parameters: Mapped[str] = mapped_column(Text, default="{}")  # JSON object
    reasoning_effort: Mapped[str] = mapped_column(String, default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
