"""Location model: beds, rooms and areas tracked by housekeeping."""

from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func
from cleanflow.database import Base
from cleanflow.models.types import JSONType


class Location(Base):
    """A cleanable location. ``current_cleaning`` is set iff status is 'in_cleaning'."""

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    number = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default='available', index=True)  # 'available', 'in_cleaning', 'occupied'
    external_code = Column(String(100), nullable=True, index=True)
    location_type = Column(String(30), nullable=False, default='leito')

    # {type, user_id, user_name, start_time} while a cleaning is running
    current_cleaning = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_locations_name_number', 'name', 'number'),
    )

    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.name}', number='{self.number}', status='{self.status}')>"
