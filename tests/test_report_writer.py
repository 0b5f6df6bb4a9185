import json
from decimal import Decimal

from conftest import make_instrument, make_operation, operations_body, stocks_body
from trading.models import Commission, Instrument, Operation, ResponseType, Trade, TradeToSave
from trading.report_writer import fmt_decimal, format_trade_row

TRADES_HEADER = "Instrument Name;Side;Price;Amount;Commission Currency;Commission Value"
PROFIT_LOSS_HEADER = (
    "Instrument Name;Result(without commission);Commission(only trades commission);Profit & Loss;Currency"
)


def bucket_operation(op_id: str, payment: str, commission: str) -> Operation:
    return Operation(
        id=op_id,
        status="Done",
        operation_type="Buy",
        instrument_type="Stock",
        figi="F1",
        payment=Decimal(payment),
        commission=Commission(currency="USD", value=Decimal(commission)),
        trades=(Trade(trade_id=op_id, date="2020-01-01", price=Decimal(1), quantity=Decimal(1)),),
    )


class TestFormatting:

    def test_decimal(self):
        assert fmt_decimal(Decimal("10.0")) == "10"
        assert fmt_decimal(Decimal("146.50")) == "146.5"
        assert fmt_decimal(Decimal("1E+2")) == "100"
        assert fmt_decimal(Decimal("-0")) == "0"

    def test_empty_strings_rendered_as_quotes(self):
        row = format_trade_row(TradeToSave(side="Buy", price=Decimal(1), amount=Decimal(2)))

        assert row == '"";Buy;1;2;"";0'


class TestReportWriter:

    def test_end_to_end(self, parser, writer, tmp_path):
        parser.parse(stocks_body(make_instrument(figi="F1", name="Acme")), ResponseType.MARKET_STOCKS)
        parser.parse(operations_body(make_operation()), ResponseType.OPERATIONS)

        trades_path = writer.write_trades()
        pl_path = writer.write_profit_loss("2020-01-01", "2020-02-01")

        assert trades_path.read_text(encoding="utf-8").splitlines() == [
            TRADES_HEADER,
            "Acme;Buy;10;1;USD;1",
        ]
        assert pl_path == tmp_path / "pl" / "profit-loss2020-01-01-2020-02-01.output"
        assert pl_path.read_text(encoding="utf-8").splitlines() == [
            PROFIT_LOSS_HEADER,
            "Acme;10;1;9;USD",
        ]

    def test_end_to_end_with_bare_instrument(self, parser, writer):
        body = json.dumps({"payload": {"instruments": [{"figi": "F1", "name": "Acme"}]}})
        parser.parse(body, ResponseType.MARKET_STOCKS)
        parser.parse(operations_body(make_operation()), ResponseType.OPERATIONS)

        trades = writer.write_trades().read_text(encoding="utf-8").splitlines()
        pl = writer.write_profit_loss("a", "b").read_text(encoding="utf-8").splitlines()

        # commission currency comes from the operation, P&L currency from the instrument
        assert trades == [TRADES_HEADER, "Acme;Buy;10;1;USD;1"]
        assert pl == [PROFIT_LOSS_HEADER, 'Acme;10;1;9;""']

    def test_no_trailing_line_break(self, parser, writer):
        parser.parse(stocks_body(make_instrument()), ResponseType.MARKET_STOCKS)
        parser.parse(operations_body(make_operation()), ResponseType.OPERATIONS)

        content = writer.write_trades().read_text(encoding="utf-8")

        assert not content.endswith("\n")

    def test_profit_loss_arithmetic(self, processor, writer):
        processor.on_instruments_decoded([Instrument(figi="F1", name="Acme", currency="USD")])
        processor.on_operations_decoded([
            bucket_operation("1", "-100", "1.5"),
            bucket_operation("2", "-50", "-2.0"),
        ])

        [info] = writer.compute_profit_loss()

        assert info.financial_result == Decimal(150)
        assert info.commission == Decimal("3.5")
        assert info.profit_loss == Decimal("146.5")

    def test_unknown_figi_bucket_is_skipped(self, processor, writer):
        processor.on_instruments_decoded([Instrument(figi="F1", name="Acme", currency="USD")])
        processor.on_operations_decoded([
            bucket_operation("1", "-100", "1"),
            bucket_operation("2", "-5", "1").model_copy(update={"figi": "F0"}),
        ])

        path = writer.write_profit_loss("a", "b")

        assert path.read_text(encoding="utf-8").splitlines() == [PROFIT_LOSS_HEADER, "Acme;100;1;99;USD"]

    def test_rows_ordered_by_figi(self, processor, writer):
        processor.on_instruments_decoded([
            Instrument(figi="F2", name="Beta", currency="RUB"),
            Instrument(figi="F1", name="Acme", currency="USD"),
        ])
        processor.on_operations_decoded([
            bucket_operation("1", "-1", "0").model_copy(update={"figi": "F2"}),
            bucket_operation("2", "3", "0"),
        ])

        lines = writer.write_profit_loss("a", "b").read_text(encoding="utf-8").splitlines()

        assert lines[1:] == ["Acme;-3;0;-3;USD", "Beta;1;0;1;RUB"]

    def test_nothing_written_without_data(self, writer, tmp_path):
        assert writer.write_trades() is None
        assert writer.write_profit_loss("a", "b") is None
        assert not (tmp_path / "trades.output").exists()
        assert not (tmp_path / "pl").exists()
