from .diagnostics import log_environment_summary, log_wallet_status, verify_network
from .engine import TradingAgent, decision_label
from .logging import JsonFormatter, setup_logger
from .loop import run_decision_loop, wait_with_stop
from .settings import AppSettings, ConfigurationError

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "JsonFormatter",
    "TradingAgent",
    "decision_label",
    "log_environment_summary",
    "log_wallet_status",
    "run_decision_loop",
    "setup_logger",
    "verify_network",
    "wait_with_stop",
]
