"""
Report database model.

A single anonymous incident submitted at a coordinate. Creating a report
triggers the alert notification job.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, Text, Index
from app.core.database import Base
from app.models.mixins import SoftDeleteMixin


class Report(SoftDeleteMixin, Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    message = Column(Text, nullable=True)
    is_emergency = Column(Boolean, default=False, nullable=False)

    # Anonymous per-device identifier of the reporter
    reporter_identifier = Column(String, nullable=True, index=True)

    # Reporter position at submission time (used by the distance gate)
    reporter_latitude = Column(Float, nullable=True)
    reporter_longitude = Column(Float, nullable=True)

    __table_args__ = (
        Index("ix_reports_created_deleted_lat_lon", "created_at", "deleted_at", "latitude", "longitude"),
    )

    def location_display(self, digits: int = 4) -> str:
        return f"{self.latitude:.{digits}f}, {self.longitude:.{digits}f}"

    def __repr__(self):
        return f"<Report(id={self.id}, external_id={self.external_id}, lat={self.latitude}, lon={self.longitude})>"
