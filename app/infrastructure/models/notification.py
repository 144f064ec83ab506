"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from app.domain.entities.notification import (
    ACTION_TEXT_MAX_LENGTH,
    ACTION_URL_MAX_LENGTH,
    DEFAULT_ICON,
    ICON_MAX_LENGTH,
    NOTIFICATION_CATEGORY_INFO,
    NOTIFICATION_PRIORITY_MEDIUM,
    TITLE_MAX_LENGTH,
)
from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_user_read_created", "user_id", "read", "created_at"),
        Index("ix_notification_user_category", "user_id", "category"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    message = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default=NOTIFICATION_CATEGORY_INFO)
    read = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    read_at = Column(DateTime(), nullable=True)
    related_task_id = Column(Integer, nullable=True, index=True)
    related_application_id = Column(Integer, nullable=True, index=True)
    related_payment_id = Column(Integer, nullable=True, index=True)
    action_url = Column(String(ACTION_URL_MAX_LENGTH), nullable=True)
    action_text = Column(String(ACTION_TEXT_MAX_LENGTH), nullable=True)
    icon = Column(String(ICON_MAX_LENGTH), nullable=False, default=DEFAULT_ICON)
    priority = Column(String(10), nullable=False, default=NOTIFICATION_PRIORITY_MEDIUM)
    expires_at = Column(DateTime(), nullable=True, index=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )

    user = relationship("UserModel", back_populates="notifications")


__all__ = ["NotificationModel"]
