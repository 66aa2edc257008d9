"""Completed cleanings and SLA delay occurrences."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from cleanflow.database import Base


class CleaningRecord(Base):
    """One finished cleaning with its expected and actual duration."""

    __tablename__ = "cleaning_records"

    id = Column(Integer, primary_key=True, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    location_name = Column(String(160), nullable=False)
    location_type = Column(String(30), nullable=True)

    cleaning_type = Column(String(20), nullable=False)  # 'concurrent', 'terminal', 'external'
    user_id = Column(String(100), nullable=True)
    user_name = Column(String(100), nullable=True)

    start_time = Column(DateTime(timezone=True), nullable=False)
    finish_time = Column(DateTime(timezone=True), nullable=False, index=True)
    expected_duration = Column(Integer, nullable=False)  # minutes
    actual_duration = Column(Integer, nullable=False)  # minutes
    status = Column(String(20), nullable=False, default='completed')
    delayed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<CleaningRecord(id={self.id}, location='{self.location_name}', delayed={self.delayed})>"


class CleaningOccurrence(Base):
    """A cleaning that exceeded its SLA."""

    __tablename__ = "cleaning_occurrences"

    id = Column(Integer, primary_key=True, index=True)
    location_name = Column(String(160), nullable=False)
    cleaning_type = Column(String(20), nullable=False)
    user_name = Column(String(100), nullable=True)
    delay_in_minutes = Column(Integer, nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<CleaningOccurrence(id={self.id}, location='{self.location_name}', delay={self.delay_in_minutes})>"
