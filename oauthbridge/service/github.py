"""
Identity backend that authenticates users directly against github.com.

GitHub OAuth apps hand out non-expiring tokens with no refresh token;
GitHub Apps with expiring user tokens also return `refresh_token` and
`expires_in`. Both are passed through untouched when present.
"""

from datetime import timedelta
from json import JSONDecodeError
from typing import Any
from urllib.parse import urlencode, urlunparse

import httpx
from structlog.typing import FilteringBoundLogger

from oauthbridge.core.errors import BackendError, BackendUnavailable
from oauthbridge.core.models import BackendSession, BackendUser, SessionExchange
from oauthbridge.service.backend import IdentityBackend

ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
USER_URL = "https://api.github.com/user"


async def github_api_call(
    github_api_access_token: str | None,
    url: str,
    timeout: timedelta,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """
    Make an api call to the GitHub API using your access token.
    """

    headers = {
        "Accept": "application/json",
    }

    if github_api_access_token:
        headers["Authorization"] = f"Bearer {github_api_access_token}"

    try:
        async with httpx.AsyncClient(
            timeout=timeout.total_seconds(), transport=transport
        ) as client:
            response = await client.get(url, headers=headers)
    except httpx.TimeoutException:
        raise BackendUnavailable("Identity backend timed out")
    except httpx.HTTPError:
        raise BackendError(f"Error contacting {url}")

    if response.status_code != 200:
        raise BackendError(f"Error contacting {url}")

    try:
        content = response.json()
    except JSONDecodeError:
        raise BackendError(f"Invalid response from {url}")

    if not isinstance(content, dict):
        raise BackendError(f"Invalid response from {url}")

    return content


class GithubIdentityBackend(IdentityBackend):
    """
    Identity backend for github.com. GitHub sends the user back to the
    return address (our `/callback`) with its own `code` appended.
    """

    name = "github"

    client_id: str
    client_secret: str
    scope: str
    timeout: timedelta
    transport: httpx.AsyncBaseTransport | None

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        scope: str,
        timeout: timedelta,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.timeout = timeout
        self.transport = transport

    async def begin_delegated_login(
        self, provider: str, return_address: str, log: FilteringBoundLogger
    ) -> str:
        """
        Create a redirect to GitHub to authenticate a user. No network
        call is required; GitHub validates the request when the user
        arrives.
        """

        if provider != self.name:
            await log.aerror("github.begin.unsupported_provider", provider=provider)
            raise BackendError(f"Unsupported provider: {provider}")

        query = {
            "client_id": self.client_id,
            "redirect_uri": return_address,
            "scope": self.scope,
        }

        return urlunparse(
            ("https", "github.com", "login/oauth/authorize", "", urlencode(query), "")
        )

    async def exchange_code(
        self, code: str, log: FilteringBoundLogger
    ) -> SessionExchange:
        """
        Perform the GitHub login _after_ receiving the code from the GitHub
        authentication service. That code is used to authenticate against
        GitHub and attain an access token (and, for expiring tokens, a
        refresh token and lifetime).

        Parameters
        ----------
        code: str
            The code provided by GitHub to authenticate against a user.
        log: FilteringBoundLogger
            Logger

        Returns
        -------
        exchange: SessionExchange
            The GitHub user and their session.

        Raises
        ------
        BackendError
            If GitHub refuses the code or we can't read the user.
        BackendUnavailable
            If GitHub does not answer within the timeout.
        """

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout.total_seconds(), transport=self.transport
            ) as client:
                response = await client.post(
                    ACCESS_TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "code": code,
                    },
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException:
            await log.aerror("github.exchange.timeout")
            raise BackendUnavailable("Identity backend timed out")
        except httpx.HTTPError as e:
            await log.aerror("github.exchange.transport_error", error=str(e))
            raise BackendError("Could not contact GitHub")

        log = log.bind(status_code=response.status_code)

        try:
            content = response.json()
        except JSONDecodeError:
            content = {}

        if not isinstance(content, dict):
            await log.aerror("github.exchange.unexpected_response")
            raise BackendError("Invalid response from GitHub")

        if response.status_code != 200 or "error" in content:
            message = (
                content.get("error_description") or "Could not authenticate with GitHub"
            )
            await log.aerror("github.exchange.code_exchange_failed", error=message)
            raise BackendError(message)

        gh_access_token = content.get("access_token")

        if gh_access_token is None:
            await log.aerror("github.exchange.no_access_token")
            raise BackendError("GitHub returned no access token")

        await log.ainfo("github.exchange.code_exchange_success")

        user_info = await github_api_call(
            github_api_access_token=gh_access_token,
            url=USER_URL,
            timeout=self.timeout,
            transport=self.transport,
        )

        user = None
        if user_info.get("id") is not None:
            user = BackendUser(id=str(user_info["id"]))
            log = log.bind(user_id=user.id, user_name=user_info.get("login"))

        await log.ainfo("github.exchange.success")

        return SessionExchange(
            user=user,
            session=BackendSession(
                access_token=gh_access_token,
                refresh_token=content.get("refresh_token"),
                expires_in=content.get("expires_in"),
            ),
        )
