import logging
import os
from dataclasses import dataclass
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config.yaml'


@dataclass(frozen=True)
class AmlConfig:
    hmac_secret: Optional[str] = None
    log_level: str = 'INFO'


def load_config(path=DEFAULT_CONFIG_PATH):
    """Read decoder settings from YAML; a missing file or key keeps the default."""
    if not os.path.exists(path):
        logger.info("Config %s not found, using defaults", path)
        return AmlConfig()

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    hmac_section = raw.get('hmac') or {}
    logging_section = raw.get('logging') or {}

    secret = hmac_section.get('secret')
    return AmlConfig(
        hmac_secret=str(secret) if secret is not None else None,
        log_level=str(logging_section.get('level', 'INFO')).upper(),
    )
