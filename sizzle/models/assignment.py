"""
Coaching models — programs, their sessions, and per-user session assignments.
"""
import uuid

from sqlalchemy import Column, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from sizzle.database import Base


class CoachingProgram(Base):
    __tablename__ = 'coaching_programs'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ProgramSession(Base):
    __tablename__ = 'program_sessions'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    program_id = Column(Text, ForeignKey('coaching_programs.id'), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    session_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserAssignment(Base):
    __tablename__ = 'user_assignments'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False, index=True)
    session_id = Column(Text, ForeignKey('program_sessions.id'), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
