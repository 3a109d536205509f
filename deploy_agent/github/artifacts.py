"""GitHub Actions artifact download client.

Resolves a workflow run's ``artifacts_url`` to its first artifact and
downloads the artifact's zip archive. The client performs no retries; the
download worker owns the retry policy.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx
import msgspec

from deploy_agent.secret_store import API_TOKEN_SECRET_NAME

from .errors import ArtifactFetchError
from .models import ArtifactDescriptor, ArtifactList

if typ.TYPE_CHECKING:
    from deploy_agent.secret_store import SecretStore


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubArtifactConfig:
    """Configuration for the GitHub artifacts REST client."""

    user_agent: str = "deploy-agent/0.1"
    accept: str = "application/vnd.github+json"
    api_version: str = "2022-11-28"
    timeout_s: float = 120.0
    token_secret_name: str = API_TOKEN_SECRET_NAME


class GitHubArtifactClient:
    """Download the build artifact of a workflow run.

    Parameters
    ----------
    secret_store
        Store holding the GitHub API token. The token is read on every call.
    config
        Optional client configuration.
    http_client
        Optional ``httpx.AsyncClient`` for testing. If not provided, the
        instance creates and owns its own client.

    """

    def __init__(
        self,
        secret_store: SecretStore,
        config: GitHubArtifactConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client."""
        self._secret_store = secret_store
        self._config = config or GitHubArtifactConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._config.timeout_s
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "User-Agent": self._config.user_agent,
            "Accept": self._config.accept,
            "X-GitHub-Api-Version": self._config.api_version,
        }

    async def _get(self, url: str, token: str) -> httpx.Response:
        """Issue an authenticated GET, following GitHub's storage redirects.

        httpx drops the ``Authorization`` header when a redirect leaves the
        original host, so the token is not sent to the blob store.
        """
        try:
            response = await self._client.get(
                url,
                headers=self._headers(token),
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            raise ArtifactFetchError.transport(url, exc) from exc
        if not response.is_success:
            raise ArtifactFetchError.http_error(url, response.status_code)
        return response

    async def first_artifact(
        self, artifacts_url: str, token: str
    ) -> ArtifactDescriptor:
        """Return the first artifact listed at ``artifacts_url``.

        Raises
        ------
        ArtifactFetchError
            If the request fails, the body is malformed, or the list is empty.

        """
        response = await self._get(artifacts_url, token)
        try:
            listing = msgspec.json.decode(response.content, type=ArtifactList)
        except msgspec.DecodeError as exc:
            raise ArtifactFetchError.invalid_json(artifacts_url, str(exc)) from exc
        if not listing.artifacts:
            raise ArtifactFetchError.no_artifacts(artifacts_url)
        return listing.artifacts[0]

    async def fetch_archive(self, artifacts_url: str) -> bytes:
        """Download the zip archive of the run's first artifact.

        Parameters
        ----------
        artifacts_url
            The ``artifacts_url`` of a workflow run.

        Returns
        -------
        bytes
            The archive, unmodified.

        Raises
        ------
        ArtifactFetchError
            If either request fails or the run has no artifacts.
        SecretStoreError
            If the API token cannot be read.

        """
        token = await self._secret_store.get_secret(self._config.token_secret_name)
        artifact = await self.first_artifact(artifacts_url, token)
        response = await self._get(artifact.archive_download_url, token)
        return response.content
