"""
Profile model — one row per salesperson, keyed by the auth user id.
"""
from sqlalchemy import Column, Text, DateTime
from sqlalchemy.sql import func

from sizzle.database import Base


class Profile(Base):
    __tablename__ = 'profiles'

    id = Column(Text, primary_key=True)
    email = Column(Text, nullable=True)
    full_name = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
