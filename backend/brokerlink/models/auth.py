from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
from brokerlink.core.database import Base

UPSTOX = "upstox"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlatformUser(Base):
    """User model for authentication"""
    __tablename__ = "platform_users"

    user_id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True, nullable=False)  # always lowercase
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    broker_connections = relationship(
        "BrokerConnection",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BrokerConnection(Base):
    """Encrypted broker credentials and OAuth tokens, one row per user and broker"""
    __tablename__ = "broker_connections"
    __table_args__ = (
        UniqueConstraint("user_id", "broker_name", name="uq_broker_connections_user_broker"),
    )

    connection_id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(
        String(36),
        ForeignKey("platform_users.user_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    broker_name = Column(String, default=UPSTOX, nullable=False)
    api_key = Column(String, nullable=False)  # encrypted
    api_secret = Column(String, nullable=False)  # encrypted
    redirect_uri = Column(String, nullable=False)
    access_token = Column(String, nullable=True)  # encrypted
    refresh_token = Column(String, nullable=True)  # encrypted
    token_valid_until = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user = relationship("PlatformUser", back_populates="broker_connections")
