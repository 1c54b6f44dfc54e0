from __future__ import annotations

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from profilehub.database import Base


class Education(Base):
    __tablename__ = "educations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    university_name = Column(String(255), nullable=False, index=True)
    degree_type = Column(String(100), nullable=False)  # Bachelor, Master, PhD, ...
    field_of_study = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # graduation or expected graduation
    gpa = Column(Numeric(3, 2), nullable=True)
    description = Column(Text, nullable=True)
    is_current = Column(Boolean, nullable=False, default=False)
    location = Column(String(255), nullable=True)
    honors = Column(String(255), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="educations")

    __table_args__ = (
        Index("ix_educations_user_dates", "user_id", "start_date", "end_date"),
    )
