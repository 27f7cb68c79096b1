"""HTTP clients for the account provisioning collaborators."""

from typing import Any

import httpx

from core.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT
from core.exceptions import ProvisioningError
from core.log import get_logger

logger = get_logger(__name__)


class CollaboratorClient:
    """Shared httpx plumbing for a JSON collaborator service."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_HTTP_TIMEOUT):
        """Initialize the client.

        Args:
            base_url: Service base URL
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "CollaboratorClient":
        """Async context manager entry."""
        self._get_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"User-Agent": DEFAULT_USER_AGENT},
            )
        return self.client

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST JSON and return the decoded JSON body.

        Raises:
            ProvisioningError: On transport errors and non-2xx responses
        """
        client = self._get_client()
        try:
            response = await client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProvisioningError(
                _error_detail(e.response), status_code=e.response.status_code
            ) from e
        except httpx.TimeoutException as e:
            raise ProvisioningError(f"Timeout calling {path}") from e
        except httpx.RequestError as e:
            raise ProvisioningError(f"Network error calling {path}: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ProvisioningError(f"Invalid JSON response from {path}") from e
        if not isinstance(body, dict):
            raise ProvisioningError(f"Unexpected response from {path}")
        return body


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _require(body: dict[str, Any], key: str, path: str) -> str:
    value = body.get(key)
    if not value:
        raise ProvisioningError(f"Response from {path} is missing '{key}'")
    return str(value)


class IdentityProvisioningClient(CollaboratorClient):
    """Creates external login accounts for bulk-imported people."""

    async def create_account(
        self, account: dict[str, Any], scope: str | None = None
    ) -> str:
        """Create an account and return its external id."""
        payload = {**account, "scope": scope}
        body = await self._post("/accounts", payload)
        external_id = _require(body, "id", "/accounts")
        logger.debug(f"Created external account {external_id}")
        return external_id

    async def retry_account(self, item_id: str, scope: str | None = None) -> str:
        """Retry provisioning of a previously failed item; returns the external id."""
        path = f"/accounts/{item_id}/retry"
        body = await self._post(path, {"scope": scope})
        return _require(body, "id", path)


class DomainRecordClient(CollaboratorClient):
    """Creates the business records that reference provisioned accounts."""

    async def create_record(
        self, kind: str, record: dict[str, Any], scope: str | None = None
    ) -> str:
        """Create a record of ``kind`` and return its id."""
        path = f"/records/{kind}"
        body = await self._post(path, {**record, "scope": scope})
        return _require(body, "id", path)
