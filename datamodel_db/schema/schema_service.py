"""
Data Models Service Client - Remote DDL Retrieval

Schema DDL is not authored locally. It is generated by the data models service
for a given model, version, dialect and operation, and retrieved as plain text:

    GET {service}/{model}/{version}/{ddl|drop}/postgresql/{tables|indexes|constraints}/

The client also validates a model/version pair against the service. A valid
result is cached on the client instance, so one client performs the round
trips at most once per model/version and test cases do not share state.
"""

import logging
import threading
from typing import Optional, Set, Tuple

import requests

from ..exceptions import ConfigurationError, SchemaServiceError
from ..interfaces import SchemaSourceInterface
from ..models import LIFECYCLE_TABLE_MARKER, SQL_DIALECT, DDLOperationKey
from ..utils import join_url_path


class SchemaServiceClient(SchemaSourceInterface):
    """HTTP client for the data models service."""

    def __init__(self, service_url: str, session: Optional[requests.Session] = None,
                 timeout: float = 60.0):
        """
        Initialize the client.

        Args:
            service_url: Base URL of the service
            session: Optional requests session (a new one is created if None)
            timeout: Per-request timeout in seconds
        """
        self.logger = logging.getLogger(__name__)
        self.service_url = service_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self._valid_versions: Set[Tuple[str, str]] = set()
        self._lock = threading.Lock()

    def ddl_url(self, model: str, version: str, key: DDLOperationKey) -> str:
        return join_url_path(
            self.service_url,
            f"/{model}/{version}/{key.operator.value}/{SQL_DIALECT}/{key.operand.value}/"
        )

    def _get(self, url: str) -> requests.Response:
        try:
            return self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise SchemaServiceError(f"Cannot access data models service at {url}: {e}", url=url)

    def fetch_ddl(self, model: str, version: str, key: DDLOperationKey) -> str:
        """
        Fetch the raw SQL text for one DDL operation.

        Returns:
            The `;`-delimited SQL text

        Raises:
            SchemaServiceError: On connection failure or a non-200 response
        """
        url = self.ddl_url(model, version, key)
        self.logger.debug(f"Fetching {key} DDL from {url}")
        response = self._get(url)
        if response.status_code != 200:
            raise SchemaServiceError(
                f"Data models service ({url}) returned error for {key}: {response.status_code} {response.reason}",
                url=url,
                status_code=response.status_code,
            )
        return widen_version_history_column(response.text)

    def is_valid_model_version(self, model: str, version: str) -> bool:
        """
        Validate a model and version with the service (and the service itself).

        Returns:
            True if the service knows the model/version, False if it answers with
            a non-200 status for it

        Raises:
            SchemaServiceError: If the service itself is unreachable or unhealthy
        """
        with self._lock:
            if (model, version) in self._valid_versions:
                return True

            response = self._get(self.service_url)
            if response.status_code != 200:
                raise SchemaServiceError(
                    f"Data models service ({self.service_url}) returned error response: "
                    f"{response.status_code} {response.reason}",
                    url=self.service_url,
                    status_code=response.status_code,
                )

            url = join_url_path(self.service_url, f"/{model}/{version}/ddl/{SQL_DIALECT}/tables/")
            response = self._get(url)
            if response.status_code != 200:
                self.logger.debug(f"{url} returned {response.status_code}; version is not valid")
                return False

            self._valid_versions.add((model, version))
            return True

    def check_model_and_version(self, model: str, version: str) -> None:
        """
        Raises:
            ConfigurationError: If the model/version pair is unknown to the service
            SchemaServiceError: If the service cannot be reached
        """
        if not self.is_valid_model_version(model, version):
            raise ConfigurationError(
                f"Invalid version '{version}' of model '{model}', according to {self.service_url}"
            )


def widen_version_history_column(sql_text: str) -> str:
    """
    Widen dms_version in the version history CREATE TABLE from VARCHAR(16) to VARCHAR(50).

    The service emits a column too narrow for some version strings. The rewrite
    is a no-op once the service output is corrected.
    """
    statements = sql_text.split(";")
    for i, stmt in enumerate(statements):
        if LIFECYCLE_TABLE_MARKER in stmt and "CREATE TABLE" in stmt:
            statements[i] = stmt.replace("dms_version VARCHAR(16)", "dms_version VARCHAR(50)", 1)
    return ";".join(statements)
