"""Configuration values sourced from environment variables."""

import os
from typing import Final

_timeout = os.getenv(key="BIGQUERY_TIMEOUT_SECONDS", default="")


BIGQUERY_PROJECT_ID: Final[str] = os.getenv(key="BIGQUERY_PROJECT_ID", default="")
BIGQUERY_LOCATION: Final[str] = os.getenv(key="BIGQUERY_LOCATION", default="")
BIGQUERY_CREDENTIALS_FILE: Final[str] = os.getenv(key="BIGQUERY_CREDENTIALS_FILE", default="")
BIGQUERY_TIMEOUT_SECONDS: Final[float | None] = float(_timeout) if _timeout else None
LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="bigquery-engine")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)
