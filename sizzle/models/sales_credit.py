"""
SalesCredit model — ledger of closed deals already folded into a weekly record.

A pipeline entry is credited at most once; the unique constraint on
pipeline_entry_id is what stops a repeated close from double counting.
"""
from sqlalchemy import Column, Integer, Text, Float, DateTime, ForeignKey
from sqlalchemy.sql import func

from sizzle.database import Base


class SalesCredit(Base):
    __tablename__ = 'sales_credits'

    id = Column(Integer, primary_key=True, autoincrement=True)
    pipeline_entry_id = Column(Text, ForeignKey('pipeline_entries.id'), nullable=False, unique=True)
    performance_metric_id = Column(Text, ForeignKey('performance_metrics.id'), nullable=False)
    user_id = Column(Text, nullable=False)
    week_number = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Float, nullable=False)
    credited_at = Column(DateTime(timezone=True), server_default=func.now())
