# app/trading/decoders.py - JSON payload -> domain records
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from pydantic import ValidationError

from trading.models import (
    Commission,
    Instrument,
    Operation,
    OperationsEnvelope,
    Portfolio,
    Trade,
)

T = TypeVar("T")

# json key -> model field
INSTRUMENT_FIELDS = {
    "figi": "figi",
    "ticker": "ticker",
    "isin": "isin",
    "minPriceIncrement": "min_price_increment",
    "lot": "lot",
    "currency": "currency",
    "name": "name",
    "type": "type",
}

OPERATION_FIELDS = {
    "id": "id",
    "status": "status",
    "operationType": "operation_type",
    "figi": "figi",
    "instrumentType": "instrument_type",
    "price": "price",
    "quantity": "quantity",
    "currency": "currency",
    "date": "date",
    "payment": "payment",
    "isMarginCall": "is_margin_call",
}

COMMISSION_FIELDS = {
    "currency": "currency",
    "value": "value",
}

TRADE_FIELDS = {
    "tradeId": "trade_id",
    "date": "date",
    "price": "price",
    "quantity": "quantity",
}


class DecodeError(Exception):
    pass


@dataclass
class DecodeResult(Generic[T]):
    """Decoded value plus the diagnostics collected on the way.

    ``ok`` is False when a structural key was missing; ``value`` is then None
    and nothing should be handed further down the pipeline.
    """
    value: Optional[T] = None
    diagnostics: list[str] = field(default_factory=list)
    ok: bool = True

    @classmethod
    def failed(cls, diagnostics: list[str]) -> "DecodeResult[T]":
        return cls(value=None, diagnostics=diagnostics, ok=False)


def _check_exist(container: Any, key: str, diagnostics: list[str], where: str = "") -> bool:
    # explicit null counts as absent
    if isinstance(container, dict) and container.get(key) is not None:
        return True
    diagnostics.append(f"No {key}{f' in {where}' if where else ''}")
    return False


def _pick_fields(obj: dict, mapping: dict[str, str], diagnostics: list[str], where: str) -> dict:
    values = {}
    for json_key, attr in mapping.items():
        if _check_exist(obj, json_key, diagnostics, where):
            values[attr] = obj[json_key]
    return values


def _build_tolerant(model, values: dict, mapping: dict[str, str], diagnostics: list[str], where: str):
    # A field of the wrong type is dropped back to its default, like a missing one
    json_keys = {attr: key for key, attr in mapping.items()}
    while True:
        try:
            return model(**values)
        except ValidationError as e:
            rejected = {error["loc"][0] for error in e.errors() if error["loc"] and error["loc"][0] in values}
            if not rejected:
                raise DecodeError(f"{where}: invalid {model.__name__}: {e}") from e
            for attr in rejected:
                diagnostics.append(f"Invalid {json_keys.get(attr, attr)} in {where}: {values.pop(attr)!r}")


def _payload_array(document: Any, key: str) -> tuple[Optional[list], list[str]]:
    diagnostics: list[str] = []
    if not _check_exist(document, "payload", diagnostics):
        return None, diagnostics
    payload = document["payload"]
    if not _check_exist(payload, key, diagnostics, "payload"):
        return None, diagnostics
    items = payload[key]
    if not isinstance(items, list):
        diagnostics.append(f"payload.{key} is not an array")
        return None, diagnostics
    return items, diagnostics


def decode_instruments(document: Any) -> DecodeResult[list[Instrument]]:
    items, diagnostics = _payload_array(document, "instruments")
    if items is None:
        return DecodeResult.failed(diagnostics)

    instruments = []
    for index, obj in enumerate(items):
        where = f"instrument #{index}"
        values = _pick_fields(obj, INSTRUMENT_FIELDS, diagnostics, where)
        instruments.append(_build_tolerant(Instrument, values, INSTRUMENT_FIELDS, diagnostics, where))
    return DecodeResult(value=instruments, diagnostics=diagnostics)


def _decode_trade(obj: Any, where: str) -> Trade:
    if not isinstance(obj, dict):
        raise DecodeError(f"{where}: trade is not an object")
    missing = [key for key in TRADE_FIELDS if key not in obj]
    if missing:
        raise DecodeError(f"{where}: trade is missing {', '.join(missing)}")
    try:
        return Trade(**{attr: obj[key] for key, attr in TRADE_FIELDS.items()})
    except ValidationError as e:
        raise DecodeError(f"{where}: invalid trade: {e}") from e


def decode_operation(obj: Any, diagnostics: list[str], where: str) -> Operation:
    values = _pick_fields(obj, OPERATION_FIELDS, diagnostics, where)

    if _check_exist(obj, "commission", diagnostics, where):
        commission_where = f"{where} commission"
        commission_values = _pick_fields(obj["commission"], COMMISSION_FIELDS, diagnostics, commission_where)
        values["commission"] = _build_tolerant(
            Commission, commission_values, COMMISSION_FIELDS, diagnostics, commission_where
        )

    # Operation-level fields are tolerant, trade-level ones are not
    if _check_exist(obj, "trades", diagnostics, where):
        if not isinstance(obj["trades"], list):
            raise DecodeError(f"{where}: trades is not an array")
        values["trades"] = tuple(
            _decode_trade(trade, f"{where} trade #{i}") for i, trade in enumerate(obj["trades"])
        )

    return _build_tolerant(Operation, values, OPERATION_FIELDS, diagnostics, where)


def decode_operations(document: Any) -> DecodeResult[OperationsEnvelope]:
    items, diagnostics = _payload_array(document, "operations")
    if items is None:
        return DecodeResult.failed(diagnostics)

    envelope = OperationsEnvelope(
        tracking_id=str(document.get("trackingId") or ""),
        status=str(document.get("status") or ""),
    )
    for index, obj in enumerate(items):
        envelope.operations.append(decode_operation(obj, diagnostics, f"operation #{index}"))
    return DecodeResult(value=envelope, diagnostics=diagnostics)


def decode_portfolio(document: Any) -> DecodeResult[Portfolio]:
    items, diagnostics = _payload_array(document, "positions")
    if items is None:
        return DecodeResult.failed(diagnostics)

    figis = []
    for index, position in enumerate(items):
        # a position without figi invalidates the whole portfolio
        if not _check_exist(position, "figi", diagnostics, f"position #{index}"):
            return DecodeResult.failed(diagnostics)
        if not isinstance(position["figi"], str):
            diagnostics.append(f"Invalid figi in position #{index}: {position['figi']!r}")
            return DecodeResult.failed(diagnostics)
        figis.append(position["figi"])
    return DecodeResult(value=Portfolio(positions=tuple(figis)), diagnostics=diagnostics)
