"""Location mapping model: explicit external code overrides."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from cleanflow.database import Base


class LocationMapping(Base):
    """Maps an external bed code to an internal name/number, bypassing code parsing."""

    __tablename__ = "location_mappings"

    id = Column(Integer, primary_key=True, index=True)

    external_code = Column(String(100), nullable=False, unique=True, index=True)
    internal_name = Column(String(100), nullable=False)
    internal_number = Column(String(50), nullable=False)
    setor = Column(String(100), nullable=True)
    type = Column(String(30), nullable=False, default='leito')

    # Derived identifiers used by QR codes
    location_id = Column(String(150), nullable=True, index=True)
    short_code = Column(String(60), nullable=True)
    qr_code_url = Column(String(200), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<LocationMapping(id={self.id}, external='{self.external_code}', internal='{self.internal_name} {self.internal_number}')>"
