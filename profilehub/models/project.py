from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from profilehub.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    url = Column(String(1024), nullable=True)

    owner_kind = Column(String(32), nullable=False)  # profile | education
    owner_id = Column(Integer, nullable=False)

    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_projects_owner", "owner_kind", "owner_id"),
    )
