"""
Connection configuration and BigQuery client factory.

Credentials are taken from the first available source:
  1) inline service-account JSON
  2) a service-account key file
  3) a ready `google.auth` credentials object
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Self

from google.api_core.retry import Retry
from google.auth.credentials import Credentials
from google.cloud import bigquery
from google.cloud.bigquery.retry import DEFAULT_RETRY
from google.oauth2 import service_account

from src import settings
from src.bigquery_engine.errors import ConnectionConfigError

SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/bigquery",
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/drive",
)


@dataclass(frozen=True)
class BigQueryConfig:
    """
    Settings for one BigQuery connection.

    project_id:
        Home project; two-part table names ('dataset.table') resolve into it.
    location:
        Default location for jobs and new datasets; "" leaves the API default.
    timeout:
        Seconds allowed per API call; None uses the client library default.
    retry:
        Retry policy for metadata API calls; None disables retries so the first
        failure reaches the caller.
    """

    project_id: str
    location: str = ""
    credentials_json: str = ""
    credentials_file_path: str = ""
    credentials: Credentials | None = None
    timeout: float | None = None
    retry: Retry | None = field(default_factory=lambda: DEFAULT_RETRY, compare=False)

    @classmethod
    def from_settings(cls) -> Self:
        """Build a config from environment-driven settings."""
        return cls(
            project_id=settings.BIGQUERY_PROJECT_ID,
            location=settings.BIGQUERY_LOCATION,
            credentials_file_path=settings.BIGQUERY_CREDENTIALS_FILE,
            timeout=settings.BIGQUERY_TIMEOUT_SECONDS,
        )


def resolve_credentials(config: BigQueryConfig) -> Credentials:
    """Return credentials from the first configured source."""
    if config.credentials_json:
        try:
            info = json.loads(config.credentials_json)
        except json.JSONDecodeError as exc:
            raise ConnectionConfigError("credentials JSON is not valid JSON") from exc
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    if config.credentials_file_path:
        return service_account.Credentials.from_service_account_file(
            config.credentials_file_path, scopes=SCOPES
        )
    if config.credentials is not None:
        return config.credentials
    raise ConnectionConfigError("no credentials provided")


def create_client(config: BigQueryConfig) -> bigquery.Client:
    """Create a `bigquery.Client` for `config`."""
    if not config.project_id:
        raise ConnectionConfigError("no project id provided")

    credentials = resolve_credentials(config)
    return bigquery.Client(
        project=config.project_id,
        credentials=credentials,
        location=config.location or None,
    )
