from datetime import date, datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, JSON, Text
from app.db.base import Base, TimestampMixin, new_id, utcnow

SERVICE_TYPES = ("ramassage", "recyclage", "dechets_speciaux", "urgence")
MISSION_STATUSES = ("pending", "assigned", "in_progress", "completed", "cancelled")
PRIORITIES = ("low", "medium", "high", "urgent")
UPDATE_TYPES = ("status_change", "note", "photo", "issue")


class Mission(Base, TimestampMixin):
    __tablename__ = "missions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(300), nullable=False)
    service_type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    client_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("clients.id", ondelete="CASCADE"), index=True, nullable=True
    )
    assigned_staff_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("staff_profiles.id", ondelete="SET NULL"), index=True, nullable=True
    )
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    scheduled_time: Mapped[str | None] = mapped_column(String(8), nullable=True)  # HH:MM
    estimated_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    special_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    equipment_needed: Mapped[list | None] = mapped_column(JSON, nullable=True)
    gps_location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zone: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    client = relationship("Client")
    assigned_staff = relationship("StaffProfile", back_populates="missions_assigned")
    mission_updates = relationship(
        "MissionUpdate", back_populates="mission", cascade="all, delete-orphan",
        order_by="MissionUpdate.timestamp",
    )
    comments = relationship(
        "Comment", back_populates="mission", cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )


class MissionUpdate(Base):
    __tablename__ = "mission_updates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    mission_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("missions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    staff_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("staff_profiles.id", ondelete="SET NULL"), nullable=True
    )
    update_type: Mapped[str] = mapped_column(String(30), nullable=False, default="note")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    mission = relationship("Mission", back_populates="mission_updates")


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    mission_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("missions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    mission = relationship("Mission", back_populates="comments")
    user = relationship("User")
