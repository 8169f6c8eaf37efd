from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from tokenoracle.db.models.price_sample import PriceSampleRecord
from tokenoracle.domain.models.price import NearestSamples, PriceSample

_UPSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class PriceRepo:
    """Durable price store. Writes are idempotent upserts on (token, network, timestamp)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(
        self, token: str, network: str, timestamp: int, price: Decimal, source: str = "live"
    ) -> None:
        dialect = self._session.get_bind().dialect.name
        insert_fn = _UPSERT_BY_DIALECT.get(dialect)
        if insert_fn is None:
            raise ValueError(f"Upsert not supported for dialect: {dialect}")

        stmt = insert_fn(PriceSampleRecord).values(
            token=token, network=network, timestamp=timestamp, price=price, source=source,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["token", "network", "timestamp"],
            set_={"price": stmt.excluded.price, "source": stmt.excluded.source, "updated_at": func.now()},
        )
        await self._session.execute(stmt)

    async def get_exact(self, token: str, network: str, timestamp: int) -> Optional[PriceSample]:
        result = await self._session.execute(
            select(PriceSampleRecord).where(
                PriceSampleRecord.token == token,
                PriceSampleRecord.network == network,
                PriceSampleRecord.timestamp == timestamp,
            ).execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return PriceSample.model_validate(row) if row is not None else None

    async def get_nearest(self, token: str, network: str, timestamp: int) -> NearestSamples:
        """Closest sample strictly before ``timestamp`` and closest at or after it."""
        scope = (PriceSampleRecord.token == token, PriceSampleRecord.network == network)

        before = await self._session.execute(
            select(PriceSampleRecord)
            .where(*scope, PriceSampleRecord.timestamp < timestamp)
            .order_by(PriceSampleRecord.timestamp.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        after = await self._session.execute(
            select(PriceSampleRecord)
            .where(*scope, PriceSampleRecord.timestamp >= timestamp)
            .order_by(PriceSampleRecord.timestamp.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        before_row = before.scalar_one_or_none()
        after_row = after.scalar_one_or_none()
        return NearestSamples(
            before=PriceSample.model_validate(before_row) if before_row is not None else None,
            after=PriceSample.model_validate(after_row) if after_row is not None else None,
        )

    async def range(self, token: str, network: str, start: int, end: int) -> list[PriceSample]:
        """Samples with start <= timestamp <= end, oldest first."""
        result = await self._session.execute(
            select(PriceSampleRecord)
            .where(
                PriceSampleRecord.token == token,
                PriceSampleRecord.network == network,
                PriceSampleRecord.timestamp >= start,
                PriceSampleRecord.timestamp <= end,
            )
            .order_by(PriceSampleRecord.timestamp.asc())
            .execution_options(populate_existing=True)
        )
        return [PriceSample.model_validate(r) for r in result.scalars().all()]
