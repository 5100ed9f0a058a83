"""
API dependencies - configuration access and upload whitelist enforcement
"""
from fastapi import Depends, Request

from core.config import Configuration
from core.logging_config import get_logger
from domain.common.exceptions import SourceNotWhitelistedException


logger = get_logger(__name__)


def get_configuration(request: Request) -> Configuration:
    """Return the configuration the application was created with."""
    return request.app.state.config


def require_upload_whitelisted(
    request: Request,
    config: Configuration = Depends(get_configuration),
) -> None:
    """Reject the request unless its source IP is in the upload whitelist."""
    client_ip = getattr(request.state, "client_ip", None)
    if client_ip is None and request.client:
        client_ip = request.client.host

    if client_ip is None:
        if config.get_upload_whitelist():
            logger.warning("upload_source_unknown")
            raise SourceNotWhitelistedException()
        return

    if not config.is_whitelisted(client_ip):
        logger.warning("upload_source_rejected", client_ip=client_ip)
        raise SourceNotWhitelistedException(client_ip)
