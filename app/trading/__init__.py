from .tinkoff_client import TinkoffClient
from .parser import JsonParser
from .trades_processor import TradesProcessor
from .report_writer import ReportWriter

__all__ = ['TinkoffClient', 'JsonParser', 'TradesProcessor', 'ReportWriter']
