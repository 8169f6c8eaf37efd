from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tokenoracle.api.deps import get_db, get_resolver
from tokenoracle.api.schemas.prices import ADDRESS_PATTERN, PriceHistoryResponse, PricePoint, PriceRequest, PriceResponse
from tokenoracle.db.repos.price_repo import PriceRepo
from tokenoracle.domain.enums import Network
from tokenoracle.pricing.resolver import PriceResolver

router = APIRouter(prefix="/api", tags=["prices"])

DbDep = Annotated[AsyncSession, Depends(get_db)]
ResolverDep = Annotated[PriceResolver, Depends(get_resolver)]


@router.post("/price", response_model=PriceResponse)
async def resolve_price(body: PriceRequest, resolver: ResolverDep) -> PriceResponse:
    """Price at a timestamp with its provenance (cache, store, live or interpolated)."""
    result = await resolver.resolve(body.token, body.network, body.timestamp)
    return PriceResponse(price=result.price, source=result.source)


@router.get("/prices/history", response_model=PriceHistoryResponse)
async def price_history(
    db: DbDep,
    token: str = Query(..., pattern=ADDRESS_PATTERN),
    network: Network = Query(...),
    start: int = Query(0, ge=0),
    end: int = Query(..., ge=0),
) -> PriceHistoryResponse:
    """Stored samples between start and end (inclusive), oldest first."""
    token = token.lower()
    samples = await PriceRepo(db).range(token, network.value, start, end)
    return PriceHistoryResponse(
        token=token,
        network=network,
        prices=[PricePoint.model_validate(s) for s in samples],
        total=len(samples),
    )
