from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from tokenoracle.domain.enums import Network, PriceSourceTag

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"


class PriceRequest(BaseModel):
    token: str = Field(pattern=ADDRESS_PATTERN)
    network: Network
    timestamp: int = Field(ge=0)

    @field_validator("token")
    @classmethod
    def normalize_token(cls, v: str) -> str:
        return v.lower()


class PriceResponse(BaseModel):
    price: Decimal
    source: PriceSourceTag


class PricePoint(BaseModel):
    timestamp: int
    price: Decimal

    model_config = {"from_attributes": True}


class PriceHistoryResponse(BaseModel):
    token: str
    network: Network
    prices: list[PricePoint]
    total: int
