from __future__ import annotations
from typing import Optional


class FinstationError(Exception):
    """Base class for errors raised by finstation."""


class InvalidInputError(FinstationError, ValueError):
    """Rejected before any computation starts (bad horizon, missing or non-finite driver)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class DomainError(FinstationError, ValueError):
    """Inputs are well-formed but the model is undefined for them (e.g. r <= g)."""


class APIError(FinstationError):
    """Failure talking to an upstream service."""

    def __init__(self, message: str, status_code: Optional[int] = None, service: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.service = service


class TickerValidationError(InvalidInputError):
    def __init__(self, message: str = "Ticker must be 1-5 uppercase letters"):
        super().__init__(message, field="ticker")
