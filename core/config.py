"""
Service configuration: defaults, document loading, validation and derived state.

A ``Configuration`` is built once at startup (defaults, then the TOML document
and ``FILESHARE_*`` environment overrides), finalized by ``initialize()`` and
only read afterwards.
"""
from __future__ import annotations

import ipaddress
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import SplitResult

from pydantic import AnyHttpUrl, Field, PrivateAttr, TypeAdapter, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, TomlConfigSettingsSource

from core.logging_config import get_logger
from domain.common.exceptions import (
    ConfigLoadError,
    InvalidDownloadDomainError,
    InvalidWhitelistEntryError,
    TTLBoundsError,
)
from shared.formatting import format_bytes, format_duration


logger = get_logger(__name__)

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# Bind addresses meaning "all interfaces" and the loopback advertised instead
WILDCARD_ADDRESSES = {"0.0.0.0": "127.0.0.1", "::": "::1"}

# Deprecated LogLevel value still honoured for backward compatibility
DEPRECATED_DEBUG_LEVEL = "DEBUG"

# Flags recomputed by initialize() whatever the document says
DERIVED_FLAGS = ("google_authentication", "ovh_authentication", "no_anonymous_uploads")

_http_url = TypeAdapter(AnyHttpUrl)


# Fixed mapping between configuration document keys and attributes. Adding
# keys is backward compatible, renaming or removing them is not.
DOCUMENT_KEYS: dict[str, str] = {
    "Debug": "debug",
    "DebugRequests": "debug_requests",
    "LogLevel": "log_level",
    "ListenAddress": "listen_address",
    "ListenPort": "listen_port",
    "Path": "path",
    "MaxFileSize": "max_file_size",
    "MaxFilePerUpload": "max_file_per_upload",
    "DefaultTTL": "default_ttl",
    "MaxTTL": "max_ttl",
    "SslEnabled": "ssl_enabled",
    "SslCert": "ssl_cert",
    "SslKey": "ssl_key",
    "NoWebInterface": "no_web_interface",
    "DownloadDomain": "download_domain",
    "EnhancedWebSecurity": "enhanced_web_security",
    "SourceIPHeader": "source_ip_header",
    "UploadWhitelist": "upload_whitelist",
    "Authentication": "authentication",
    "NoAnonymousUploads": "no_anonymous_uploads",
    "OneShot": "one_shot",
    "Removable": "removable",
    "Stream": "stream",
    "ProtectedByPassword": "protected_by_password",
    "GoogleAuthentication": "google_authentication",
    "GoogleAPISecret": "google_api_secret",
    "GoogleAPIClientID": "google_api_client_id",
    "GoogleValidDomains": "google_valid_domains",
    "OvhAuthentication": "ovh_authentication",
    "OvhAPIEndpoint": "ovh_api_endpoint",
    "OvhAPIKey": "ovh_api_key",
    "OvhAPISecret": "ovh_api_secret",
    "MetadataBackendConfig": "metadata_backend_config",
    "DataBackend": "data_backend",
    "DataBackendConfig": "data_backend_config",
}


def parse_whitelist_entry(entry: str) -> IPNetwork:
    """Parse one whitelist entry, treating a bare address as a single host."""
    if "/" not in entry:
        address = ipaddress.ip_address(entry)
        return ipaddress.ip_network(f"{address}/{address.max_prefixlen}")
    return ipaddress.ip_network(entry, strict=False)


class Configuration(BaseSettings):
    """File-sharing service configuration"""

    # Logging
    debug: bool = False
    debug_requests: bool = False
    log_level: str = Field(default="", description="Deprecated, use debug")

    # Network
    listen_address: str = "0.0.0.0"
    listen_port: int = Field(default=8080, ge=0, le=65535)
    path: str = ""
    ssl_enabled: bool = False
    ssl_cert: str = ""
    ssl_key: str = ""

    # Upload policy
    max_file_size: int = Field(default=10_000_000_000, ge=0)  # 10GB
    max_file_per_upload: int = Field(default=1000, ge=0)
    default_ttl: int = Field(default=2_592_000, ge=0)  # 30 days, 0 = unlimited
    max_ttl: int = Field(default=2_592_000, ge=0)  # 30 days, 0 = unlimited
    one_shot: bool = True
    removable: bool = True
    stream: bool = True
    protected_by_password: bool = True

    # Web front
    no_web_interface: bool = False
    download_domain: str = ""
    enhanced_web_security: bool = False

    # Access control
    source_ip_header: str = ""
    upload_whitelist: list[str] = Field(default_factory=list)
    authentication: bool = False
    no_anonymous_uploads: bool = False

    # Google identity provider (enabled flag is derived)
    google_authentication: bool = False
    google_api_client_id: str = ""
    google_api_secret: str = Field(default="", repr=False)
    google_valid_domains: list[str] = Field(default_factory=list)

    # OVH identity provider (enabled flag is derived)
    ovh_authentication: bool = False
    ovh_api_endpoint: str = "https://eu.api.ovh.com/1.0"
    ovh_api_key: str = ""
    ovh_api_secret: str = Field(default="", repr=False)

    # Backends, validated by their own consumers
    metadata_backend_config: dict[str, Any] = Field(default_factory=dict, repr=False)
    data_backend: str = "file"
    data_backend_config: dict[str, Any] = Field(default_factory=dict, repr=False)

    # Derived state, rebuilt by initialize()
    _download_domain_url: Optional[AnyHttpUrl] = PrivateAttr(default=None)
    _upload_whitelist: tuple[IPNetwork, ...] = PrivateAttr(default=())
    _clean: bool = PrivateAttr(default=True)
    _supplied_flags: dict[str, bool] = PrivateAttr(default_factory=dict)
    _reported_overrides: set[str] = PrivateAttr(default_factory=set)

    model_config = SettingsConfigDict(
        env_prefix="FILESHARE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment wins over the document, which arrives as init kwargs
        return (env_settings, init_settings)

    def model_post_init(self, __context: Any) -> None:
        super().model_post_init(__context)
        # Derived flags explicitly given by the document or environment
        self._supplied_flags = {
            name: getattr(self, name)
            for name in DERIVED_FLAGS
            if name in self.model_fields_set
        }

    def initialize(self) -> None:
        """Validate raw fields and compute derived state.

        Runs every step in order and stops at the first violation, raising a
        ``ConfigValidationError`` subclass. A store whose initialization
        failed must be discarded. Calling it again with unchanged fields
        yields the same derived state.
        """
        if self.log_level == DEPRECATED_DEBUG_LEVEL:
            self.debug = True
            self.debug_requests = True

        self.path = self.path.rstrip("/")

        whitelist: list[IPNetwork] = []
        for entry in self.upload_whitelist:
            try:
                whitelist.append(parse_whitelist_entry(entry))
            except ValueError as exc:
                raise InvalidWhitelistEntryError(entry, str(exc)) from exc
        self._upload_whitelist = tuple(whitelist)

        derived = {
            "google_authentication": bool(self.google_api_client_id and self.google_api_secret),
            "ovh_authentication": bool(self.ovh_api_key and self.ovh_api_secret),
            "no_anonymous_uploads": self.no_anonymous_uploads,
        }
        if not self.authentication:
            derived = dict.fromkeys(derived, False)
        for name, value in derived.items():
            self._derive_flag(name, value)

        self._download_domain_url = None
        if self.download_domain:
            domain = self.download_domain.strip(" \t\r\n/")
            try:
                self._download_domain_url = _http_url.validate_python(domain)
            except ValidationError as exc:
                reason = exc.errors()[0].get("msg", "invalid URL")
                raise InvalidDownloadDomainError(self.download_domain, reason) from exc

        # 0 means unlimited on either side
        if self.default_ttl > 0 and self.max_ttl > 0 and self.default_ttl > self.max_ttl:
            raise TTLBoundsError(self.default_ttl, self.max_ttl)

    def _derive_flag(self, name: str, value: bool) -> None:
        supplied = self._supplied_flags.get(name)
        if supplied is not None and supplied != value and name not in self._reported_overrides:
            logger.warning(
                "config_flag_overridden",
                field=name,
                supplied=supplied,
                derived=value,
            )
            self._reported_overrides.add(name)
        setattr(self, name, value)

    def get_upload_whitelist(self) -> tuple[IPNetwork, ...]:
        """Return the parsed IP upload whitelist."""
        return self._upload_whitelist

    def get_download_domain(self) -> Optional[AnyHttpUrl]:
        """Return the parsed download domain URL, if one is configured."""
        return self._download_domain_url

    def auto_clean(self, value: bool) -> None:
        """Enable or disable the periodic upload cleaning.

        Only meaningful before the server starts serving requests.
        """
        self._clean = value

    def is_auto_clean(self) -> bool:
        return self._clean

    def is_whitelisted(self, ip: Union[str, IPAddress]) -> bool:
        """Return whether ``ip`` may upload.

        An empty whitelist accepts everything. Otherwise the address must fall
        in one of the parsed networks; an unparseable address never does.
        """
        if not self._upload_whitelist:
            return True

        if isinstance(ip, str):
            try:
                ip = ipaddress.ip_address(ip)
            except ValueError:
                logger.debug("whitelist_invalid_address", address=ip)
                return False
        # IPv4-mapped clients match both IPv4 and mapped IPv6 entries
        candidates = [ip]
        if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
            candidates.append(ip.ipv4_mapped)

        return any(
            address in subnet
            for subnet in self._upload_whitelist
            for address in candidates
        )

    def get_server_url(self) -> SplitResult:
        """Return the URL the server is reachable at."""
        scheme = "https" if self.ssl_enabled else "http"
        address = WILDCARD_ADDRESSES.get(self.listen_address, self.listen_address)
        if ":" in address:
            address = f"[{address}]"
        return SplitResult(scheme, f"{address}:{self.listen_port}", self.path, "", "")

    def get_log_level(self) -> str:
        """Verbosity handed to the logging subsystem."""
        return "DEBUG" if self.debug else "INFO"

    def to_public_dict(self) -> dict[str, Any]:
        """Settings clients are allowed to see, keyed like the web API."""
        return {
            "maxFileSize": self.max_file_size,
            "maxFilePerUpload": self.max_file_per_upload,
            "defaultTTL": self.default_ttl,
            "maxTTL": self.max_ttl,
            "downloadDomain": self.download_domain,
            "authentication": self.authentication,
            "noAnonymousUploads": self.no_anonymous_uploads,
            "oneShot": self.one_shot,
            "removable": self.removable,
            "stream": self.stream,
            "protectedByPassword": self.protected_by_password,
            "googleAuthentication": self.google_authentication,
            "ovhAuthentication": self.ovh_authentication,
            "ovhApiEndpoint": self.ovh_api_endpoint,
        }

    def __str__(self) -> str:
        lines: list[str] = []
        if self.download_domain:
            lines.append(f"Download domain : {self.download_domain}")

        lines.append(f"Maximum file size : {format_bytes(self.max_file_size)}")
        lines.append(f"Maximum files per upload : {self.max_file_per_upload}")

        lines.append(f"Default upload TTL : {_ttl_text(self.default_ttl)}")
        lines.append(f"Maximum upload TTL : {_ttl_text(self.max_ttl)}")

        lines.append(f"One shot upload : {_status(self.one_shot)}")
        lines.append(f"Removable upload : {_status(self.removable)}")
        lines.append(f"Streaming upload : {_status(self.stream)}")
        lines.append(f"Upload password : {_status(self.protected_by_password)}")

        lines.append(f"Authentication : {_status(self.authentication)}")
        if self.authentication:
            lines.append(f"Google authentication : {_status(self.google_authentication)}")
            lines.append(f"OVH authentication : {_status(self.ovh_authentication)}")
            if self.ovh_authentication and self.ovh_api_endpoint:
                lines.append(f"OVH API endpoint : {self.ovh_api_endpoint}")

        return "".join(f"{line}\n" for line in lines)


def _status(enabled: bool) -> str:
    return "enabled" if enabled else "disabled"


def _ttl_text(seconds: int) -> str:
    return format_duration(seconds) if seconds > 0 else "unlimited"


# Document keys match case-insensitively, as the original TOML decoder did
_FOLDED_KEYS: dict[str, str] = {
    **{name.lower(): name for name in Configuration.model_fields},
    **{key.lower(): name for key, name in DOCUMENT_KEYS.items()},
}


def _document_to_fields(document: dict[str, Any], path: Path) -> dict[str, Any]:
    """Translate document keys into attribute names, dropping unknown keys."""
    fields: dict[str, Any] = {}
    for key, value in document.items():
        name = DOCUMENT_KEYS.get(key) or _FOLDED_KEYS.get(key.lower())
        if name is None:
            logger.warning("config_unknown_key", path=str(path), key=key)
            continue
        fields[name] = value
    return fields


def load_configuration(path: Union[str, Path]) -> Configuration:
    """Load, overlay and initialize the configuration stored at ``path``.

    Raises:
        ConfigLoadError: the document is missing, unreadable or malformed.
        ConfigValidationError: the decoded values are inconsistent.
    """
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise ConfigLoadError(config_path, "no such file")

    try:
        document = TomlConfigSettingsSource(Configuration, toml_file=config_path)()
    except (OSError, ValueError) as exc:
        raise ConfigLoadError(config_path, str(exc)) from exc

    try:
        config = Configuration(**_document_to_fields(document, config_path))
    except ValidationError as exc:
        raise ConfigLoadError(config_path, str(exc)) from exc

    config.initialize()
    logger.info(
        "config_loaded",
        path=str(config_path),
        data_backend=config.data_backend,
        whitelist_size=len(config.get_upload_whitelist()),
    )
    return config


__all__ = [
    "Configuration",
    "DOCUMENT_KEYS",
    "IPNetwork",
    "load_configuration",
    "parse_whitelist_entry",
]
