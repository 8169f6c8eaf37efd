"""Durable historical token prices."""

from decimal import Decimal

from sqlalchemy import BigInteger, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tokenoracle.db.session import Base, TimestampMixin


class PriceSampleRecord(TimestampMixin, Base):
    """Token price at a Unix timestamp. Keyed by (token, network, timestamp); writes are upserts."""

    __tablename__ = "price_samples"
    __table_args__ = (
        UniqueConstraint("token", "network", "timestamp", name="uq_price_samples_token_network_timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(42))
    network: Mapped[str] = mapped_column(String(20))
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True)  # Unix epoch seconds
    price: Mapped[Decimal] = mapped_column(Numeric(38, 18))
    source: Mapped[str] = mapped_column(String(20), default="live")  # live / backfill / bracket
