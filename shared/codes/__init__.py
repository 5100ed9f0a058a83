"""
Shared business codes used across layers (Core/API).

This package exposes BusinessCode at `shared.codes`, the single source of
truth for the codes carried by exceptions and unified responses.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_VALIDATION_ERROR = 10003

    # Configuration errors (2xxxx)
    CONFIG_ERROR = 20000
    CONFIG_LOAD_ERROR = 20001
    CONFIG_VALIDATION_ERROR = 20002

    # Permission errors (3xxxx)
    PERMISSION_ERROR = 30000
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    SERVICE_UNAVAILABLE = 40003


__all__ = ["BusinessCode"]
