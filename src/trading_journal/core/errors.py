"""Custom exception hierarchy for the trading journal."""


class TradingJournalError(Exception):
    """Base exception for all trading journal errors."""


# --- Configuration ---
class ConfigError(TradingJournalError):
    """Invalid or missing configuration."""


# --- Data ---
class DataError(TradingJournalError):
    """Trade data ingestion or quality error."""


class TradeFileError(DataError):
    """Trade file is unreadable or has an unsupported layout."""


class InvalidTradeError(DataError):
    """A trade row failed validation."""

    def __init__(self, row: int, reason: str):
        self.row = row
        self.reason = reason
        super().__init__(f"Invalid trade at row {row}: {reason}")


# --- Export ---
class ExportError(TradingJournalError):
    """Report could not be rendered in the requested format."""
