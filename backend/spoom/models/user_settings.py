from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, func
from sqlalchemy.orm import relationship

from spoom.core.base import Base

DEFAULT_PRIVACY_SETTINGS = {
    "shareStatus": True,
    "showOnlineStatus": True,
    "allowDataCollection": False,
}


class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id = Column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    theme = Column(String(20), nullable=False, default="system", server_default="system")
    language = Column(String(10), nullable=False, default="en", server_default="en")

    notifications_enabled = Column(Boolean, nullable=False, default=True, server_default="true")
    email_notifications = Column(Boolean, nullable=False, default=True, server_default="true")
    push_notifications = Column(Boolean, nullable=False, default=False, server_default="false")
    desktop_notifications = Column(Boolean, nullable=False, default=False, server_default="false")

    privacy_settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_PRIVACY_SETTINGS))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", back_populates="settings")
