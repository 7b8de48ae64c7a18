# Role: One place to configure stdlib logging for the API and the CLI. Modules only call
# logging.getLogger(__name__); the level follows config.DEBUG.

from __future__ import annotations

import logging

import spot_assistant.config as config

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    level = logging.DEBUG if config.DEBUG else logging.INFO
    logging.basicConfig(level=level, format=_FORMAT)
    logging.getLogger("spot_assistant").setLevel(level)
    # Keep third-party HTTP chatter out of the assistant trace.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
