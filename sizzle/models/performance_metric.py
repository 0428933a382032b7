"""
PerformanceMetric model — one weekly performance record per (user, week, year).
"""
import uuid

from sqlalchemy import Column, Integer, Text, Float, DateTime, UniqueConstraint
from sqlalchemy.sql import func

from sizzle.database import Base


class PerformanceMetric(Base):
    __tablename__ = 'performance_metrics'
    __table_args__ = (
        UniqueConstraint('user_id', 'week_number', 'year', name='uq_performance_metric_user_week'),
    )

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False, index=True)
    week_number = Column(Integer, nullable=False)   # ISO week
    year = Column(Integer, nullable=False)          # ISO year
    week_start = Column(DateTime(timezone=True), nullable=False)
    sales_amount = Column(Float, nullable=False, default=0.0)
    calls_made = Column(Integer, nullable=False, default=0)
    meetings_booked = Column(Integer, nullable=False, default=0)
    leads_generated = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
