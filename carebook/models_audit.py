"""
Audit Models
Append-only record of administrative actions on patient data
"""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from .database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Who
    actor_id = Column(String(128), nullable=False, index=True)
    actor_name = Column(String(100), nullable=True)
    actor_email = Column(String(254), nullable=True)
    actor_role = Column(String(20), nullable=True)

    # What
    action = Column(String(20), nullable=False)
    resource = Column(String(50), nullable=False)
    resource_id = Column(String(128), nullable=False)
    changes = Column(JSON, nullable=True)
    description = Column(Text, nullable=True)

    # Request context
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    session_id = Column(String(128), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    __table_args__ = (Index("ix_audit_logs_resource", "resource", "resource_id"),)
