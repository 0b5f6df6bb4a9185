# app/trading/trades_processor.py - joins instruments with operations
from __future__ import annotations

import logging
from typing import Optional

from trading.models import (
    NO_OPERATION_ID,
    Instrument,
    Operation,
    TradeToSave,
    operation_sort_key,
)

logger = logging.getLogger(__name__)

ALLOWED_OPERATION_TYPES = frozenset({"Buy", "Sell", "BuyCard"})
DECLINED_STATUS = "Declined"
STOCK_INSTRUMENT_TYPE = "Stock"


def is_reportable(operation: Operation) -> bool:
    return (
        operation.operation_type in ALLOWED_OPERATION_TYPES
        and operation.status != DECLINED_STATUS
        and len(operation.trades) > 0
        and operation.instrument_type == STOCK_INSTRUMENT_TYPE
        and operation.id != NO_OPERATION_ID
    )


def trade_side(operation: Operation) -> str:
    # BuyCard is a buy paid from the card
    return "Sell" if operation.operation_type == "Sell" else "Buy"


class TradesProcessor:
    """Aggregates decoded instruments and operations into report rows.

    Instruments are expected before operations; an operation whose figi is
    not indexed yet still produces trade rows, with an empty instrument name.
    """

    def __init__(self):
        self.figi_to_instrument: dict[str, Instrument] = {}
        self.trades: list[TradeToSave] = []
        # figi -> numeric operation id -> operation
        self._operations: dict[str, dict[int, Operation]] = {}

    def on_instruments_decoded(self, instruments: list[Instrument]) -> None:
        for instrument in instruments:
            assert instrument.figi and instrument.name, f"Instrument without figi or name: {instrument!r}"
            self.figi_to_instrument[instrument.figi] = instrument
        logger.debug(f"Instrument index size: {len(self.figi_to_instrument)}")

    def on_operations_decoded(self, operations: list[Operation]) -> None:
        accepted = 0
        for operation in operations:
            if not is_reportable(operation):
                continue
            accepted += 1

            instrument_name = self._instrument_name(operation)
            for execution in operation.trades:
                # commission belongs to the operation, every execution row repeats it
                self.trades.append(TradeToSave(
                    instrument_name=instrument_name,
                    side=trade_side(operation),
                    price=execution.price,
                    amount=execution.quantity,
                    commission=operation.commission,
                ))

            self._add_to_bucket(operation)

        logger.info(f"Reportable operations: {accepted} of {len(operations)}, trade rows: {len(self.trades)}")

    def _instrument_name(self, operation: Operation) -> str:
        instrument = self.figi_to_instrument.get(operation.figi)
        if instrument is None:
            logger.warning(f"Instrument not found for FIGI {operation.figi!r} (operation {operation.id})")
            return ""
        return instrument.name

    def _add_to_bucket(self, operation: Operation):
        key = operation_sort_key(operation)
        if key is None:
            logger.warning(f"Operation id {operation.id!r} is not numeric, excluded from profit/loss")
            return
        bucket = self._operations.setdefault(operation.figi, {})
        if key in bucket:
            logger.debug(f"Duplicate operation id {operation.id} for FIGI {operation.figi}, keeping first")
            return
        bucket[key] = operation

    @property
    def operations_by_figi(self) -> dict[str, list[Operation]]:
        """Buckets ordered by figi, operations ordered by numeric id."""
        return {
            figi: [bucket[key] for key in sorted(bucket)]
            for figi, bucket in sorted(self._operations.items())
        }

    def operations_for(self, figi: str) -> list[Operation]:
        bucket = self._operations.get(figi, {})
        return [bucket[key] for key in sorted(bucket)]

    def instrument(self, figi: str) -> Optional[Instrument]:
        return self.figi_to_instrument.get(figi)
