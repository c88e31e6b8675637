"""
Alert database model.

An alert is a standing subscription to reports inside a circle. The
subscriber email is stored twice: encrypted (reversible, for sending) and
hashed (one-way, for verification lookups).
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, Text, Index
from app.core.database import Base
from app.models.mixins import SoftDeleteMixin


class Alert(SoftDeleteMixin, Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)

    # Geofence
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    radius_km = Column(Float, nullable=False)

    message = Column(Text, nullable=True)

    # Anonymous per-device identifier of the owner
    user_identifier = Column(String, nullable=True, index=True)

    # Subscriber email
    encrypted_email = Column(Text, nullable=True)
    email_hash = Column(String(64), nullable=True, index=True)
    is_verified = Column(Boolean, default=False, nullable=False, index=True)

    # Channel opt-in
    use_email = Column(Boolean, default=True, nullable=False)
    use_push = Column(Boolean, default=True, nullable=False)

    # Composite index backing the bounding-box prefilter
    __table_args__ = (
        Index("ix_alerts_deleted_verified_lat_lon", "deleted_at", "is_verified", "latitude", "longitude"),
    )

    @property
    def is_push_only(self) -> bool:
        return self.use_push and not self.use_email

    def __repr__(self):
        return f"<Alert(id={self.id}, external_id={self.external_id}, radius_km={self.radius_km}, verified={self.is_verified})>"
