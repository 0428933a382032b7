"""
PipelineEntry model — one tracked prospect with a value and a funnel stage.
"""
import uuid

from sqlalchemy import Column, Text, Float, DateTime
from sqlalchemy.sql import func

from sizzle.database import Base


class PipelineEntry(Base):
    __tablename__ = 'pipeline_entries'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    value = Column(Float, nullable=False, default=0.0)
    stage = Column(Text, nullable=False, default='LEADS')   # one of config.PIPELINE_STAGES
    status = Column(Text, nullable=False, default='OPEN')   # OPEN/WON/LOST
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
