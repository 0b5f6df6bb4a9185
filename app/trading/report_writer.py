# app/trading/report_writer.py - semicolon separated trade and P&L reports
from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

from trading.models import ProfitLossInfo, TradeToSave
from trading.trades_processor import TradesProcessor

logger = logging.getLogger(__name__)

DELIMITER = ";"
EMPTY_FIELD = '""'

TRADES_COLUMNS = [
    "Instrument Name",
    "Side",
    "Price",
    "Amount",
    "Commission Currency",
    "Commission Value",
]

PROFIT_LOSS_COLUMNS = [
    "Instrument Name",
    "Result(without commission)",
    "Commission(only trades commission)",
    "Profit & Loss",
    "Currency",
]

PROFIT_LOSS_FILENAME = "profit-loss{from_time}-{to_time}.output"


def show_empty(value: str) -> str:
    return value if value else EMPTY_FIELD


def fmt_decimal(value: Decimal) -> str:
    # 10.0 -> "10", 1E+2 -> "100"
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


def format_trade_row(trade: TradeToSave) -> str:
    return DELIMITER.join([
        show_empty(trade.instrument_name),
        show_empty(trade.side),
        fmt_decimal(trade.price),
        fmt_decimal(trade.amount),
        show_empty(trade.commission.currency),
        fmt_decimal(trade.commission.value),
    ])


def format_profit_loss_row(info: ProfitLossInfo) -> str:
    return DELIMITER.join([
        show_empty(info.instrument_name),
        fmt_decimal(info.financial_result),
        fmt_decimal(info.commission),
        fmt_decimal(info.profit_loss),
        show_empty(info.currency),
    ])


class ReportWriter:
    def __init__(
        self,
        processor: TradesProcessor,
        trades_path: Union[str, Path],
        profit_loss_dir: Union[str, Path],
    ):
        self.processor = processor
        self.trades_path = Path(trades_path)
        self.profit_loss_dir = Path(profit_loss_dir)

    def write_trades(self) -> Optional[Path]:
        logger.info("Save trades")
        if not self.processor.trades:
            logger.warning("No trades, trades report skipped")
            return None

        lines = [DELIMITER.join(TRADES_COLUMNS)]
        lines.extend(format_trade_row(trade) for trade in self.processor.trades)
        self._write(self.trades_path, lines)
        logger.info(f"Saved {len(self.processor.trades)} trades to {self.trades_path}")
        return self.trades_path

    def profit_loss_path(self, from_time: str, to_time: str) -> Path:
        return self.profit_loss_dir / PROFIT_LOSS_FILENAME.format(from_time=from_time, to_time=to_time)

    def compute_profit_loss(self) -> list[ProfitLossInfo]:
        rows = []
        for figi, operations in self.processor.operations_by_figi.items():
            instrument = self.processor.instrument(figi)
            if instrument is None:
                logger.error(f"Profit/loss skipped for FIGI {figi!r}: instrument not found")
                continue

            financial_result = Decimal(0)
            commission = Decimal(0)
            for operation in operations:
                if not operation.trades:
                    logger.error(f"Trade operation {operation.id} without deals, skipped")
                    continue
                financial_result -= operation.payment
                commission += abs(operation.commission.value)

            rows.append(ProfitLossInfo(
                instrument_name=instrument.name,
                currency=instrument.currency,
                financial_result=financial_result,
                commission=commission,
            ))
        return rows

    def write_profit_loss(self, from_time: str, to_time: str) -> Optional[Path]:
        logger.info("Save profit loss")
        if not self.processor.operations_by_figi:
            logger.warning("No operations, profit/loss report skipped")
            return None

        lines = [DELIMITER.join(PROFIT_LOSS_COLUMNS)]
        lines.extend(format_profit_loss_row(info) for info in self.compute_profit_loss())
        path = self.profit_loss_path(from_time, to_time)
        self._write(path, lines)
        logger.info(f"Saved profit/loss for {len(lines) - 1} instruments to {path}")
        return path

    @staticmethod
    def _write(path: Path, lines: list[str]):
        path.parent.mkdir(parents=True, exist_ok=True)
        # Every row starts with a line break, the file has no trailing one
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines))
