# app/trading/parser.py - validates raw bodies and routes them to decoders
from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Optional, Protocol, Union

from trading.decoders import (
    DecodeResult,
    decode_instruments,
    decode_operations,
    decode_portfolio,
)
from trading.models import Instrument, Operation, ResponseType

logger = logging.getLogger(__name__)


class ParserHandler(Protocol):
    def on_instruments_decoded(self, instruments: list[Instrument]) -> None: ...

    def on_operations_decoded(self, operations: list[Operation]) -> None: ...


class JsonParser:
    """Turns a raw broker response into domain records and hands them to the handler.

    Per-field diagnostics are logged at DEBUG, structural failures at ERROR.
    Missing fields inside a trade raise ``DecodeError`` out of :meth:`parse`.
    """

    def __init__(self, handler: Optional[ParserHandler] = None):
        self.handler = handler

    def parse(self, body: Union[str, bytes], response_type: ResponseType) -> Optional[DecodeResult]:
        document = self.check_json(body)
        if document is None:
            return None

        if self._is_error_envelope(document):
            return None

        if response_type == ResponseType.PORTFOLIO:
            return self.parse_portfolio(document)
        if response_type == ResponseType.OPERATIONS:
            return self.parse_operations(document)
        if response_type == ResponseType.MARKET_STOCKS:
            return self.parse_market_stocks(document)

        logger.warning(f"No decoder for response type {response_type.value}")
        return None

    def check_json(self, body: Union[str, bytes]) -> Optional[Any]:
        if isinstance(body, bytes):
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.error(f"Json parsing error: invalid UTF-8 ({e.reason}), offset {e.start}")
                return None
        try:
            return json.loads(body, parse_float=Decimal)
        except json.JSONDecodeError as e:
            # offset in bytes of the UTF-8 body, not in characters
            offset = len(body[:e.pos].encode("utf-8"))
            logger.error(f"Json parsing error: {e.msg}, offset {offset}")
            return None

    def parse_portfolio(self, document: Any) -> DecodeResult:
        # Portfolio is decoded for validation only, nothing consumes it
        result = decode_portfolio(document)
        self._log_diagnostics("portfolio", result)
        if result.ok:
            logger.info(f"Portfolio decoded: {len(result.value.positions)} positions")
        return result

    def parse_operations(self, document: Any) -> DecodeResult:
        result = decode_operations(document)
        self._log_diagnostics("operations", result)
        if not result.ok:
            return result

        envelope = result.value
        logger.info(
            f"Operations decoded: {len(envelope.operations)} "
            f"(trackingId={envelope.tracking_id or '-'}, status={envelope.status or '-'})"
        )
        if self.handler:
            self.handler.on_operations_decoded(envelope.operations)
        return result

    def parse_market_stocks(self, document: Any) -> DecodeResult:
        result = decode_instruments(document)
        self._log_diagnostics("market stocks", result)
        if not result.ok:
            return result

        logger.info(f"Instruments decoded: {len(result.value)}")
        if self.handler:
            self.handler.on_instruments_decoded(result.value)
        return result

    @staticmethod
    def _is_error_envelope(document: Any) -> bool:
        if not isinstance(document, dict) or document.get("status") != ResponseType.ERROR.value:
            return False
        payload = document.get("payload")
        if not isinstance(payload, dict):
            payload = {}
        logger.error(
            f"Broker error (trackingId={document.get('trackingId', '-')}): "
            f"{payload.get('code', '')} {payload.get('message', '')}".rstrip()
        )
        return True

    @staticmethod
    def _log_diagnostics(what: str, result: DecodeResult):
        if not result.ok:
            for message in result.diagnostics:
                logger.error(f"{what}: {message}")
            return
        for message in result.diagnostics:
            logger.debug(f"{what}: {message}")
