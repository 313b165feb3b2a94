from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from consultbook.database import Base


class ConsultantLock(Base):
    """One row per consultant. Writing it serializes slot inserts of that consultant until commit."""

    __tablename__ = "scheduling_consultant_locks"

    consultant_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, default=0)
