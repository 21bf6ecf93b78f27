"""
config.py
~~~~~~~~~

Environment based settings and logging setup.
"""

import os
import logging
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Settings read from the environment, see :func:`load_settings`."""

    log_level: str = 'INFO'
    is_production: bool = False
    model_dir: str = 'models'
    port: int = 8000
    max_network_nodes: int = 4096


def load_settings() -> Settings:
    """
    Read the settings from environment variables.

    - LOG_LEVEL: Logging level name (default INFO)
    - FLASK_ENV: 'production' for quieter logs
    - MODEL_DIR: Directory of the network database (default 'models')
    - PORT: Port of the API server (default 8000)
    - MAX_NETWORK_NODES: Largest layer size the API accepts (default 4096)

    Raises:
        ValueError: If PORT or MAX_NETWORK_NODES is not an integer
    """
    return Settings(
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        is_production=os.getenv('FLASK_ENV') == 'production',
        model_dir=os.getenv('MODEL_DIR', 'models'),
        port=int(os.getenv('PORT', '8000')),
        max_network_nodes=int(os.getenv('MAX_NETWORK_NODES', '4096'))
    )


def configure_logging(settings: Settings) -> None:
    """
    Set up logging based on environment.

    - In production: Show fewer logs (less noise) but keep our own logs
    - In development: Show more detailed logs for debugging
    """
    log_level = getattr(logging, settings.log_level, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if settings.is_production:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('matrixnet').setLevel(logging.INFO)
    else:
        logging.getLogger('werkzeug').setLevel(logging.INFO)
