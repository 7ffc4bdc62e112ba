from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String
from app.db.base import Base, TimestampMixin

ROLES = ("admin", "client", "staff")


class User(Base, TimestampMixin):
    __tablename__ = "users"

    # même id que auth.users (Supabase)
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="client")  # admin | client | staff
