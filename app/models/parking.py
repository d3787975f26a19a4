from sqlalchemy import Boolean, CheckConstraint, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.ids import gen_id
from app.models.base import Base, AuditMixin


class Parking(AuditMixin, Base):
    __tablename__ = "parkings"
    __table_args__ = (
        # reserved <=> not available
        CheckConstraint(
            "(available AND reserved_by IS NULL) OR (NOT available AND reserved_by IS NOT NULL)",
            name="ck_parkings_reservation_state",
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("prk"))

    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)

    # Relative URL under the uploads prefix, e.g. "/uploads/1700000000000-spot.jpg"
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)

    publisher_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False, index=True)

    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reserved_by: Mapped[str | None] = mapped_column(String, ForeignKey("users.id"), nullable=True)

    publisher = relationship("User", foreign_keys=[publisher_id], lazy="joined")
