"""Database model for sync cursors."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.helpers.db import Base


class DictDB(Base):
    """Named progress marker; value is the next unsynced index, stored as text."""

    __tablename__ = "dict"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
