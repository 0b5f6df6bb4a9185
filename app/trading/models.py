from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum
from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

OPERATIONS_TARGET = "/openapi/operations"
MARKET_STOCKS_TARGET = "/openapi/market/stocks"
PORTFOLIO_TARGET = "/openapi/portfolio"

# Sentinel id the broker uses for "no real operation"
NO_OPERATION_ID = "-1"
NUMERIC_ID = re.compile(r"-?[0-9]+")


class ResponseType(str, Enum):
    ERROR = "Error"
    OPERATIONS = "Operations"
    PORTFOLIO = "Portfolio"
    MARKET_STOCKS = "MarketStocks"


class Instrument(BaseModel):
    model_config = ConfigDict(frozen=True)

    figi: str = ""
    ticker: str = ""
    isin: str = ""
    min_price_increment: Decimal = Field(default=Decimal(0), ge=0)
    lot: Decimal = Decimal(0)
    currency: str = ""
    name: str = ""
    type: str = ""


class Trade(BaseModel):
    """Single execution of an operation. Every field is required."""
    model_config = ConfigDict(frozen=True)

    trade_id: str
    date: str
    price: Decimal
    quantity: Decimal


class Commission(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str = ""
    value: Decimal = Decimal(0)


class Operation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    status: str = ""
    operation_type: str = ""
    figi: str = ""
    instrument_type: str = ""
    price: Decimal = Decimal(0)
    quantity: Decimal = Decimal(0)
    payment: Decimal = Decimal(0)
    currency: str = ""
    date: str = ""
    is_margin_call: bool = False
    commission: Commission = Field(default_factory=Commission)
    trades: tuple[Trade, ...] = ()


def operation_sort_key(operation: Operation) -> Optional[int]:
    """Numeric ordering key of an operation, None unless the id is a plain ASCII integer."""
    if not NUMERIC_ID.fullmatch(operation.id):
        return None
    return int(operation.id)


class Portfolio(BaseModel):
    model_config = ConfigDict(frozen=True)

    positions: tuple[str, ...] = ()


class OperationsEnvelope(BaseModel):
    tracking_id: str = ""
    status: str = ""
    operations: list[Operation] = []


class OperationRequest(BaseModel):
    from_: str
    to: str
    figi: str = ""

    def get_target(self) -> str:
        return build_target(
            OPERATIONS_TARGET,
            [("from", self.from_), ("to", self.to), ("figi", self.figi)],
        )


def url_encode(value: str) -> str:
    # Unreserved characters stay, everything else becomes %XX
    return quote(value, safe="-_.~")


def build_target(uri: str, params: list[tuple[str, str]]) -> str:
    query = "&".join(f"{key}={url_encode(value)}" for key, value in params if value)
    return f"{uri}?{query}" if query else uri


class TradeToSave(BaseModel):
    instrument_name: str = ""
    side: str = ""
    price: Decimal = Decimal(0)
    amount: Decimal = Decimal(0)
    commission: Commission = Field(default_factory=Commission)


class ProfitLossInfo(BaseModel):
    instrument_name: str = ""
    currency: str = ""
    financial_result: Decimal = Decimal(0)
    commission: Decimal = Decimal(0)

    @property
    def profit_loss(self) -> Decimal:
        return self.financial_result - self.commission
