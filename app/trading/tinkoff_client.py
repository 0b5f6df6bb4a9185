import logging

from aiohttp import ClientSession
from yarl import URL

from trading.models import (
    MARKET_STOCKS_TARGET,
    PORTFOLIO_TARGET,
    OperationRequest,
)

logger = logging.getLogger(__name__)


class TinkoffClient:
    """Thin REST client for the Tinkoff Invest OpenAPI.

    Every call opens its own session, waits for the full body and returns it
    as text. Error statuses are not raised: the broker describes them in the
    JSON envelope, which the parser reports.
    """

    def __init__(self, token: str, base_url: str = "https://api-invest.tinkoff.ru"):
        self.token = token
        self.base_url = base_url.rstrip("/")

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    async def _get(self, target: str) -> str:
        url = f"{self.base_url}{target}"
        logger.debug(f"GET {url}")
        async with ClientSession(headers=self.headers) as session:
            # query is already percent-encoded
            async with session.get(URL(url, encoded=True)) as response:
                body = await response.text()
                if response.status >= 400:
                    logger.warning(f"GET {target} returned HTTP {response.status}")
                else:
                    logger.debug(f"GET {target} returned HTTP {response.status}, {len(body)} chars")
                return body

    async def get_market_stocks(self) -> str:
        return await self._get(MARKET_STOCKS_TARGET)

    async def get_portfolio(self) -> str:
        return await self._get(PORTFOLIO_TARGET)

    async def get_operations(self, request: OperationRequest) -> str:
        return await self._get(request.get_target())
