"""
Error taxonomy for the BigQuery engine.

- BigQueryEngineError: base class for everything raised by the engine.
- One subclass per failing stage (provisioning, drift check, recreation, reconciliation).
- A helper that normalises `google.api_core` query exceptions.

Notes
-----
- A "not found" API error is never surfaced by the reconciliation stages; each call
  site that expects possible absence turns it into a no-op outcome.
- Wrapped errors name the operation and the qualified table/dataset, and chain the
  original API error via `raise ... from exc`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from http import HTTPStatus

import requests
from google.api_core.exceptions import BadRequest, GoogleAPICallError, GoogleAPIError, NotFound

# How a metadata API call fails once the client library gives up, including retry
# exhaustion (`RetryError`) and transport timeouts.
API_CALL_ERRORS: tuple[type[Exception], ...] = (
    GoogleAPIError,
    requests.exceptions.RequestException,
)


class BigQueryEngineError(Exception):
    """Base class for engine errors."""


class MalformedNameError(BigQueryEngineError, ValueError):
    """A qualified table name is not 'dataset.table' or 'project.dataset.table'."""


class ProvisioningError(BigQueryEngineError):
    """Fetching or creating a dataset failed for a reason other than not-found."""


class DriftCheckError(BigQueryEngineError):
    """Fetching live table metadata for drift analysis failed."""


class RecreationError(BigQueryEngineError):
    """Deleting a drifted table failed; the table is left as it was."""


class ReconciliationError(BigQueryEngineError):
    """Pushing descriptions or constraints onto a live table failed."""

    @property
    def is_version_conflict(self) -> bool:
        """True when the update was rejected because the table's etag had changed."""
        cause = self.__cause__
        return (
            isinstance(cause, GoogleAPICallError)
            and cause.code == HTTPStatus.PRECONDITION_FAILED
        )


class QueryError(BigQueryEngineError):
    """A query was rejected (not found / bad request); carries the bare API message."""


class ConnectionCheckError(BigQueryEngineError):
    """The liveness query did not complete."""


class ConnectionConfigError(BigQueryEngineError):
    """The connection configuration cannot produce a client."""


# -----------------
# Helpers
# -----------------


@contextmanager
def translated_query_errors() -> Iterator[None]:
    """
    Reduce 404/400 API errors to their bare message text.

    All other exceptions propagate unchanged.
    """
    try:
        yield
    except (NotFound, BadRequest) as exc:
        raise QueryError(exc.message) from exc
