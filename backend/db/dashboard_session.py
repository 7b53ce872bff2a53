import uuid
from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func
from .database import Base


class DashboardSession(Base):
    """The warehouse a dashboard user is currently working in."""
    __tablename__ = "dashboard_sessions"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    warehouse_id = Column(String, nullable=True, index=True)
    warehouse_name = Column(String, nullable=True)
    selected_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    @property
    def to_schema(self):
        return {
            "session_id": self.id,
            "warehouse_id": self.warehouse_id,
            "warehouse_name": self.warehouse_name,
            "selected_at": self.selected_at,
        }
