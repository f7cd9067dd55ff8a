from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), default="normal", nullable=False)  # normal, suscriptor, admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    enrollments = relationship("Enrollment", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TimeSlot(Base):
    """A concrete bookable (date, time) unit for one category"""

    __tablename__ = "time_slots"
    __table_args__ = (
        UniqueConstraint("date", "time", "category", name="uq_time_slot_date_time_category"),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)  # Calendar date, no time component
    time = Column(String(5), nullable=False)  # HH:MM (24h)
    duration_minutes = Column(Integer, default=60, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    price = Column(Float, nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    is_booked = Column(Boolean, default=False, nullable=False)
    booked_by = Column(String(255), nullable=True)  # Email of the user holding the booking
    booked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class RecurringSchedule(Base):
    """Weekly template: a time range on a day of the week"""

    __tablename__ = "recurring_schedules"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, nullable=False, index=True)  # 0=Sunday ... 6=Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM, same day, after start_time
    category = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    max_participants = Column(Integer, default=10, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "category", name="uq_enrollment_user_category"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category = Column(String(50), nullable=False, index=True)
    training_name = Column(String(255), nullable=True)
    price = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="enrollments")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), default="novedad", nullable=False)  # novedad, actualizacion, sistema
    priority = Column(String(10), default="media", nullable=False)  # alta, media, baja
    # todos, suscriptores (enrolled in category), admin, usuario (recipient_user_id)
    target_users = Column(String(20), default="todos", nullable=False)
    recipient_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    category = Column(String(50), nullable=True, index=True)
    icon = Column(String(10), default="📢")
    action_url = Column(String(500), nullable=True)
    action_text = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_automatic = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(255), default="sistema", nullable=False)
    metadata_json = Column(JSON, nullable=True)
    read_by = Column(JSON, default=list, nullable=False)  # List of user ids
    created_at = Column(DateTime(timezone=True), server_default=func.now())
