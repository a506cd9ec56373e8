# opendecks_core/validation/validator.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

from opendecks_core.domain.models import Category
from opendecks_core.domain.timegrid import to_utc


class ErrorCode(Enum):
    VALIDATION = "VALIDATION"
    THROTTLED = "THROTTLED"
    DUPLICATE = "DUPLICATE"
    CAP_EXCEEDED = "CAP_EXCEEDED"
    NO_CANDIDATES = "NO_CANDIDATES"
    EMPTY_POOL = "EMPTY_POOL"
    ACCESS_DENIED = "ACCESS_DENIED"


@dataclass(frozen=True)
class KioskError(Exception):
    """Recoverable, user-facing error. `message` is safe to show on the kiosk."""
    message: str
    code: ErrorCode = ErrorCode.VALIDATION

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(KioskError):
    def __init__(self, message: str) -> None:
        super().__init__(message=message, code=ErrorCode.VALIDATION)


class ThrottledError(KioskError):
    def __init__(self, message: str = "Please wait a minute before the next sign-up.") -> None:
        super().__init__(message=message, code=ErrorCode.THROTTLED)


class DuplicateError(KioskError):
    def __init__(self, message: str) -> None:
        super().__init__(message=message, code=ErrorCode.DUPLICATE)


class CapExceededError(KioskError):
    def __init__(self, message: str = "Male cap (50%) reached for this window. Choose a different artist.") -> None:
        super().__init__(message=message, code=ErrorCode.CAP_EXCEEDED)


class NoCandidatesError(KioskError):
    def __init__(self, message: str) -> None:
        super().__init__(message=message, code=ErrorCode.NO_CANDIDATES)


class EmptyPoolError(KioskError):
    def __init__(self, message: str = "No sign-ups yet.") -> None:
        super().__init__(message=message, code=ErrorCode.EMPTY_POOL)


class AccessDeniedError(KioskError):
    def __init__(self, message: str = "Wrong PIN") -> None:
        super().__init__(message=message, code=ErrorCode.ACCESS_DENIED)


_WS = re.compile(r"\s+")


def clean_display_name(raw: Optional[str]) -> str:
    return _WS.sub(" ", (raw or "").strip())


def normalize_name(raw: Optional[str]) -> str:
    """Identity key for de-duplication: case and whitespace insensitive."""
    return clean_display_name(raw).lower()


def validate_display_name(raw: Optional[str], empty_message: str = "Please enter a DJ name.") -> str:
    name = clean_display_name(raw)
    if not name:
        raise ValidationError(empty_message)
    return name


def validate_category(raw: Union[Category, str, None]) -> Category:
    if isinstance(raw, Category):
        return raw
    if not raw:
        raise ValidationError("Please select a gender option.")
    try:
        return Category(str(raw).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown category: {raw}") from None


def can_submit(last_signup_at: Optional[datetime], now: datetime, cooldown_seconds: int) -> bool:
    if last_signup_at is None:
        return True
    return to_utc(now) >= to_utc(last_signup_at) + timedelta(seconds=cooldown_seconds)


def validate_cooldown(last_signup_at: Optional[datetime], now: datetime, cooldown_active: bool, cooldown_seconds: int) -> None:
    if cooldown_active and not can_submit(last_signup_at, now, cooldown_seconds):
        raise ThrottledError()


def check_pin(pin: Optional[str], expected: str) -> None:
    # shared staff PIN: a deterrent, not access control
    if (pin or "") != expected:
        raise AccessDeniedError()
