"""SQLModel ORM tables for the task log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Text, text
from sqlmodel import Field, SQLModel


class TaskLogRow(SQLModel, table=True):
    __tablename__ = "task_log"  # type: ignore[bad-override]
    __table_args__ = (
        Index("ix_task_log_key", "task", "params", "hostname"),
        Index(
            "uq_task_log_key_running",
            "task",
            "params",
            "hostname",
            unique=True,
            sqlite_where=text("status = 'running'"),
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    task: str
    params: str = Field(sa_column=Column(Text, nullable=False))
    hostname: str
    status: str = Field(index=True)
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    finish_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    error_message: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
