from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crewmatch.core.database import Base


class EquipmentCategory(Base):
    __tablename__ = "equipment_category"

    category_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    equipment = relationship("Equipment", back_populates="category")


class Equipment(Base):
    __tablename__ = "equipment"

    equipment_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    equipment_name: Mapped[str] = mapped_column(String(255))
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("equipment_category.category_id"), nullable=True
    )
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    storage_location: Mapped[str | None] = mapped_column(Text, nullable=True)
    rental_price_per_day: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    rental_price_per_hour: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    availability_status: Mapped[str] = mapped_column(String(50), default="available")
    condition_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    category = relationship("EquipmentCategory", back_populates="equipment")
