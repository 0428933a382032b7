"""
CallAttempt model — one logged outreach attempt against a pipeline entry.
"""
import uuid

from sqlalchemy import Column, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from sizzle.database import Base


class CallAttempt(Base):
    __tablename__ = 'call_attempts'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    pipeline_entry_id = Column(Text, ForeignKey('pipeline_entries.id'), nullable=False, index=True)
    user_id = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default='PENDING')  # PENDING/COMPLETED/NO_ANSWER/RESCHEDULED
    notes = Column(Text, nullable=True)
    attempt_date = Column(DateTime(timezone=True), nullable=False)
    next_follow_up = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
