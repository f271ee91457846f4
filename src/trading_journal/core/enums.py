"""Enumerations used across the trading journal."""

from enum import Enum


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def sign(self) -> int:
        return 1 if self is Side.BUY else -1


class PairingMethod(str, Enum):
    """Which open lot a closing trade is matched against."""

    FIFO = "FIFO"  # Oldest lot first
    LIFO = "LIFO"  # Newest lot first

    @classmethod
    def resolve(cls, value: "PairingMethod | str | None") -> "PairingMethod":
        """Map a user-supplied policy onto a method.

        ``None`` means FIFO, the literal ``"FIFO"`` means FIFO and any
        other string means LIFO.
        """
        if value is None:
            return cls.FIFO
        if isinstance(value, cls):
            return value
        return cls.FIFO if str(value).upper() == "FIFO" else cls.LIFO


class SymbolConvention(str, Enum):
    """How an option contract symbol is reduced to its underlying."""

    FIRST_DIGIT = "first_digit"  # Prefix before the first digit
    OCC = "occ"  # Prefix before YYMMDD + C/P


class TiltCategory(str, Enum):
    INSUFFICIENT_DATA = "Insufficient Data"
    CALM = "Calm & Disciplined"
    MODERATE = "Moderate Tilt Risk"
    SEVERE = "High Tilt / Severe Tilt"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
