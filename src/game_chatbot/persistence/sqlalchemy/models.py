from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

MAIL_TABLE = "artificialintelligence_chatbot_mail"


class PlayerEmail(TimestampMixin, Base):
    __tablename__ = MAIL_TABLE

    player_uuid: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
