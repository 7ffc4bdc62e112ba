from datetime import date, datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Numeric, Date, DateTime, ForeignKey, JSON, Text
from app.db.base import Base, TimestampMixin, new_id, utcnow

STAFF_STATUSES = ("active", "inactive", "on_leave")


class StaffProfile(Base, TimestampMixin):
    __tablename__ = "staff_profiles"

    # clé partagée avec users.id (1:1), pas de colonne user_id
    id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    position: Mapped[str] = mapped_column(String(120), nullable=False)
    department: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    hourly_rate: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    skills: Mapped[list | None] = mapped_column(JSON, nullable=True)
    certifications: Mapped[list | None] = mapped_column(JSON, nullable=True)
    availability: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")  # active | inactive | on_leave
    emergency_contact: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    user = relationship("User")
    missions_assigned = relationship("Mission", back_populates="assigned_staff")
    ratings_received = relationship("Rating", back_populates="staff", cascade="all, delete-orphan")


class Rating(Base):
    __tablename__ = "ratings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    staff_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("staff_profiles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    mission_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("missions.id", ondelete="SET NULL"), nullable=True
    )
    client_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    staff = relationship("StaffProfile", back_populates="ratings_received")
    mission = relationship("Mission")
    client = relationship("Client")
