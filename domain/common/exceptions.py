"""Business exceptions shared by the configuration core and its consumers.

The core layer maps these onto HTTP responses; nothing here depends on a web
framework so the loader can raise them during startup.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """Base class for business exceptions."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class ConfigLoadError(BusinessException):
    """The configuration document could not be read or decoded."""

    def __init__(self, path: Path | str, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(
            code=BusinessCode.CONFIG_LOAD_ERROR,
            message=f"unable to load config file {self.path} : {reason}",
            error_type="ConfigLoadError",
            details={"path": self.path, "reason": reason},
        )


class ConfigValidationError(BusinessException):
    """A configuration field failed semantic validation."""

    def __init__(self, message: str, *, field: str, value: Any = None):
        self.value = value
        super().__init__(
            code=BusinessCode.CONFIG_VALIDATION_ERROR,
            message=message,
            error_type=type(self).__name__,
            details={"value": value} if value is not None else None,
            field=field,
        )


class InvalidWhitelistEntryError(ConfigValidationError):
    def __init__(self, entry: str, reason: str):
        super().__init__(
            f"failed to parse upload whitelist : {entry} ({reason})",
            field="upload_whitelist",
            value=entry,
        )


class InvalidDownloadDomainError(ConfigValidationError):
    def __init__(self, domain: str, reason: str):
        super().__init__(
            f"invalid download domain URL {domain} : {reason}",
            field="download_domain",
            value=domain,
        )


class TTLBoundsError(ConfigValidationError):
    def __init__(self, default_ttl: int, max_ttl: int):
        super().__init__(
            f"DefaultTTL ({default_ttl}) should not be more than MaxTTL ({max_ttl})",
            field="default_ttl",
            value=default_ttl,
        )
        self.max_ttl = max_ttl


class SourceNotWhitelistedException(BusinessException):
    def __init__(self, source_ip: Optional[str] = None):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message="Untrusted source IP address",
            error_type="SourceNotWhitelisted",
            details={"source_ip": source_ip} if source_ip else None,
        )


__all__ = [
    "BusinessException",
    "ConfigLoadError",
    "ConfigValidationError",
    "InvalidWhitelistEntryError",
    "InvalidDownloadDomainError",
    "TTLBoundsError",
    "SourceNotWhitelistedException",
]
