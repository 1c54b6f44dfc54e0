from __future__ import annotations

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from profilehub.database import Base


EMPLOYMENT_TYPES = ("full-time", "part-time", "contract", "freelance", "internship", "temporary")


class Experience(Base):
    __tablename__ = "experiences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    company_name = Column(String(255), nullable=False, index=True)
    designation = Column(String(150), nullable=False, index=True)  # job title or role
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # null for the current job
    employment_type = Column(String(32), nullable=False, default="full-time")
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    is_current = Column(Boolean, nullable=False, default=False)
    industry = Column(String(150), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="experiences")

    __table_args__ = (
        Index("ix_experiences_user_dates", "user_id", "start_date", "end_date"),
    )
