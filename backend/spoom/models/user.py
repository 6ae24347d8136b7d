# spoom/models/user.py
from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.orm import relationship

from spoom.core.base import Base


class User(Base):
    __tablename__ = "users"

    # Identity-provider subject (Cognito `sub` / Supabase user id).
    id = Column(String(64), primary_key=True)

    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    auth_provider = Column(String(20), nullable=False, default="cognito", server_default="cognito")

    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    is_verified = Column(Boolean, nullable=False, default=False, server_default="false")

    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    settings = relationship(
        "UserSettings",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    memberships = relationship(
        "WorkspaceMember",
        back_populates="user",
        cascade="all, delete-orphan",
    )
