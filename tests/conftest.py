import json

import pytest

from trading.parser import JsonParser
from trading.report_writer import ReportWriter
from trading.trades_processor import TradesProcessor


def make_operation(**overrides) -> dict:
    operation = {
        "id": "5",
        "status": "Done",
        "operationType": "Buy",
        "instrumentType": "Stock",
        "figi": "F1",
        "price": 10,
        "quantity": 1,
        "payment": -10,
        "currency": "USD",
        "date": "2020-01-01T10:00:00+03:00",
        "commission": {"currency": "USD", "value": 1},
        "trades": [
            {"tradeId": "t1", "date": "2020-01-01T10:00:00+03:00", "price": 10, "quantity": 1},
        ],
    }
    operation.update(overrides)
    return operation


def make_instrument(**overrides) -> dict:
    instrument = {
        "figi": "F1",
        "ticker": "ACME",
        "isin": "US0000000001",
        "minPriceIncrement": 0.01,
        "lot": 1,
        "currency": "USD",
        "name": "Acme",
        "type": "Stock",
    }
    instrument.update(overrides)
    return instrument


def stocks_body(*instruments) -> str:
    return json.dumps({
        "trackingId": "abc",
        "status": "Ok",
        "payload": {"instruments": list(instruments), "total": len(instruments)},
    })


def operations_body(*operations) -> str:
    return json.dumps({
        "trackingId": "def",
        "status": "Ok",
        "payload": {"operations": list(operations)},
    })


@pytest.fixture
def processor():
    return TradesProcessor()


@pytest.fixture
def parser(processor):
    return JsonParser(processor)


@pytest.fixture
def writer(processor, tmp_path):
    return ReportWriter(processor, tmp_path / "trades.output", tmp_path / "pl")
