# config.py
import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    TINKOFF_TOKEN = os.getenv("TINKOFF_TOKEN")
    TINKOFF_API_URL = os.getenv("TINKOFF_API_URL", "https://api-invest.tinkoff.ru")
    OPERATIONS_FROM = os.getenv("OPERATIONS_FROM", "2019-01-01T00:00:01.000000+03:00")
    OPERATIONS_TO = os.getenv("OPERATIONS_TO", "2020-04-24T00:00:01.000000+03:00")
    OPERATIONS_FIGI = os.getenv("OPERATIONS_FIGI", "")
    TRADES_OUTPUT_PATH = os.getenv("TRADES_OUTPUT_PATH", "trades.output")
    PROFIT_LOSS_OUTPUT_DIR = os.getenv("PROFIT_LOSS_OUTPUT_DIR", ".")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
