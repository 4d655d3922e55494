"""Error codes shared by the entities and services, and the exception they raise."""

from __future__ import annotations

from enum import IntEnum


class ErrorCategory(IntEnum):
    """Bit offset at which each layer's error codes start."""

    BASE = 0
    DOMAIN = 4
    REPOSITORY = 8
    SERVICE = 12
    CONTROLLER = 16
    UTIL = 20
    VIEW = 24
    ETC = 28
    MAX = 31


class ErrorCode(IntEnum):
    """Single-bit result codes, grouped by the layer that produces them."""

    SUCCESS = 1 << (ErrorCategory.BASE + 0)
    UNKNOWN = 1 << (ErrorCategory.BASE + 1)
    DOMAIN_UNKNOWN = 1 << (ErrorCategory.DOMAIN + 0)
    REPOSITORY_UNKNOWN = 1 << (ErrorCategory.REPOSITORY + 0)
    SERVICE_UNKNOWN = 1 << (ErrorCategory.SERVICE + 0)
    CONTROLLER_UNKNOWN = 1 << (ErrorCategory.CONTROLLER + 0)
    UTIL_UNKNOWN = 1 << (ErrorCategory.UTIL + 0)
    VIEW_UNKNOWN = 1 << (ErrorCategory.VIEW + 0)
    ETC_UNKNOWN = 1 << (ErrorCategory.ETC + 0)

    @property
    def category(self) -> ErrorCategory:
        """The layer this code belongs to."""
        bit = self.value.bit_length() - 1
        return max(
            (c for c in ErrorCategory if c is not ErrorCategory.MAX and c <= bit),
            key=int,
        )


class DomainError(ValueError):
    """Raised when an entity rejects a value."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.DOMAIN_UNKNOWN) -> None:
        super().__init__(message)
        self.code = code