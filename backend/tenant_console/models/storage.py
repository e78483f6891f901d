from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..extensions import Base
from ..time_utils import utcnow


class SharedStorageEntry(Base):
    """
    One key of the cross-tab storage boundary.

    Rows are namespaced by origin so several consoles can share a database
    file without seeing each other's credentials.
    """
    __tablename__ = "shared_storage_entries"
    __table_args__ = (
        UniqueConstraint("origin", "key", name="uq_shared_storage_origin_key"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    origin: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(128), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
