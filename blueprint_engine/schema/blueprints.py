from __future__ import annotations

import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from blueprint_engine.core.database import Base

# JSONB on Postgres, plain JSON elsewhere.
JsonDocument = JSON().with_variant(JSONB(), "postgresql")


class BlueprintRow(Base):
  __tablename__ = "blueprints"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  user_id: Mapped[str] = mapped_column(String, nullable=False)
  intake: Mapped[dict] = mapped_column(JsonDocument, nullable=False)
  blueprint: Mapped[dict] = mapped_column(JsonDocument, nullable=False)
  # Denormalized for list views so the document is never parsed there.
  title: Mapped[str] = mapped_column(String, nullable=False)
  role: Mapped[str] = mapped_column(String, nullable=False)
  group_name: Mapped[str] = mapped_column(String, nullable=False)
  schema_version: Mapped[str] = mapped_column(String, nullable=False)
  prompt_version: Mapped[str] = mapped_column(String, nullable=False)
  model: Mapped[str] = mapped_column(String, nullable=False)
  repaired: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
  latency_ms: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  __table_args__ = (Index("ix_blueprints_user_id_created_at", "user_id", "created_at"),)
