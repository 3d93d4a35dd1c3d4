from __future__ import annotations
import logging
from typing import Optional

from ..config import load_config, missing_integrations
from .ai_engine import AIEngine
from .base import IntegrationError
from .gong import GongClient
from .hubspot import HubSpotClient
from .service import IntegrationService

logger = logging.getLogger(__name__)

_service: Optional[IntegrationService] = None


def get_integration_service() -> Optional[IntegrationService]:
    """The shared service, or None while any token is missing."""
    global _service
    if _service is None:
        cfg = load_config()
        missing = missing_integrations(cfg)
        if missing:
            logger.info("Integrations disabled, missing: %s", ", ".join(missing))
            return None
        _service = IntegrationService.from_config(cfg)
    return _service


__all__ = [
    "AIEngine", "GongClient", "HubSpotClient", "IntegrationError",
    "IntegrationService", "get_integration_service",
]
