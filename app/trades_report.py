# app/trades_report.py - one-shot trades and profit/loss export
import argparse
import asyncio
import logging
import sys

from aiohttp import ClientError

from config import Config
from trading.decoders import DecodeError
from trading.models import OperationRequest, ResponseType
from trading.parser import JsonParser
from trading.report_writer import ReportWriter
from trading.tinkoff_client import TinkoffClient
from trading.trades_processor import TradesProcessor

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinkoff-trades-report",
        description="Export executed stock trades and profit/loss from Tinkoff Invest",
    )
    parser.add_argument(
        "token",
        nargs="?",
        default=Config.TINKOFF_TOKEN,
        help="OpenAPI bearer token (default: $TINKOFF_TOKEN)",
    )
    parser.add_argument("--from", dest="from_", default=Config.OPERATIONS_FROM, help="operations start, ISO-8601")
    parser.add_argument("--to", default=Config.OPERATIONS_TO, help="operations end, ISO-8601")
    parser.add_argument("--figi", default=Config.OPERATIONS_FIGI, help="limit operations to one FIGI")
    parser.add_argument("--portfolio", action="store_true", help="also fetch and validate the portfolio")
    return parser


async def run(
    client: TinkoffClient,
    request: OperationRequest,
    writer: ReportWriter,
    parser: JsonParser,
    with_portfolio: bool = False,
):
    # Instruments first: operations are resolved against the figi index
    parser.parse(await client.get_market_stocks(), ResponseType.MARKET_STOCKS)

    if with_portfolio:
        parser.parse(await client.get_portfolio(), ResponseType.PORTFOLIO)

    parser.parse(await client.get_operations(request), ResponseType.OPERATIONS)

    writer.write_trades()
    writer.write_profit_loss(request.from_, request.to)


def main(argv=None) -> int:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=Config.LOG_LEVEL.upper(),
    )

    arg_parser = build_arg_parser()
    args = arg_parser.parse_args(argv)
    if not args.token:
        arg_parser.print_usage(sys.stderr)
        arg_parser.exit(2, f"{arg_parser.prog}: error: the bearer token is required\n")

    processor = TradesProcessor()
    parser = JsonParser(processor)
    writer = ReportWriter(processor, Config.TRADES_OUTPUT_PATH, Config.PROFIT_LOSS_OUTPUT_DIR)
    client = TinkoffClient(args.token, Config.TINKOFF_API_URL)
    request = OperationRequest(from_=args.from_, to=args.to, figi=args.figi or "")

    try:
        asyncio.run(run(client, request, writer, parser, with_portfolio=args.portfolio))
    except (ClientError, asyncio.TimeoutError, OSError, DecodeError) as e:
        logger.error(f"Error: {e}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
