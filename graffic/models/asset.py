from sqlalchemy import String, Integer, Enum, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from graffic.db.base import Base
from graffic.lifecycle.asset import AssetState


class AssetRecord(Base):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(
        String(length=32),
        primary_key=True,
    )

    kind: Mapped[str] = mapped_column(
        String(length=255),
        nullable=False,
        index=True,
    )

    # Slot label: NULL for primary assets, "original" or a version name for derivatives
    name: Mapped[str | None] = mapped_column(String(length=255), nullable=True)

    format: Mapped[str | None] = mapped_column(String(length=16), nullable=True)

    state: Mapped[AssetState] = mapped_column(
        Enum(AssetState, name="asset_state_enum"),
        nullable=False,
        default=AssetState.received,
        index=True,
    )

    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)

    owner_type: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    owner_id: Mapped[str | None] = mapped_column(String(length=255), nullable=True, index=True)

    parent_id: Mapped[str | None] = mapped_column(String(length=32), nullable=True, index=True)

    # version name -> child asset id
    derivatives: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow,
        nullable=False,
    )

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
