"""WebhookDispatcher — delivers detected commits as GitHub push events.

For each commit the dispatcher builds a ``GitHubPushEvent`` and POSTs it
once to::

    {endpoint}/{hook_path}/{build_config.id}/{build_config.secret}/{provider}

with the headers GitHub's hook sender uses (``User-Agent``,
``Content-Type: application/json``, ``X-GitHub-Event: push``).

Delivery is at-most-once and best-effort: a transport error or a non-2xx
response is logged and the event is dropped.  Nothing is retried or queued.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from gitpoll.exceptions import DispatchError
from gitpoll.logging import get_logger
from gitpoll.models import BuildConfig, CommitDetails, GitHubPushEvent

log = get_logger(__name__)

EVENT_HEADER = "X-GitHub-Event"
PUSH_EVENT = "push"


class WebhookDispatcher:
    """Posts push events to the build-config webhook of the cluster API."""

    def __init__(
        self,
        endpoint: str,
        hook_path: str = "osapi/v1beta1/buildConfigHooks",
        provider: str = "github",
        user_agent: str = "GitHub-Hookshot/github",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._hook_path = hook_path.strip("/")
        self._provider = provider
        self._user_agent = user_agent
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def webhook_url(self, build_config: BuildConfig) -> str:
        return "/".join(
            [
                self._endpoint,
                self._hook_path,
                quote(build_config.id, safe=""),
                quote(build_config.secret, safe=""),
                self._provider,
            ]
        )

    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._user_agent,
            "Content-Type": "application/json",
            EVENT_HEADER: PUSH_EVENT,
        }

    async def notify(self, build_config: BuildConfig, details: CommitDetails) -> bool:
        """Deliver one push event.  Returns True if the endpoint accepted it."""
        url = self.webhook_url(build_config)
        try:
            await self._post(build_config, details, url)
        except DispatchError as exc:
            log.error(
                "webhook_delivery_failed",
                build_config_id=build_config.id,
                commit=details.commit,
                status_code=exc.status_code,
                error=exc.reason,
            )
            return False
        log.info("webhook_delivered", build_config_id=build_config.id, commit=details.commit)
        return True

    async def _post(self, build_config: BuildConfig, details: CommitDetails, url: str) -> None:
        try:
            body = GitHubPushEvent.from_commit(build_config, details).model_dump_json()
        except ValueError as exc:
            raise DispatchError(url, f"cannot build push event: {exc}") from exc
        try:
            resp = await self._client.post(url, content=body, headers=self.headers())
        except httpx.HTTPError as exc:
            raise DispatchError(url, str(exc) or exc.__class__.__name__) from exc
        if not resp.is_success:
            raise DispatchError(url, f"unexpected status {resp.status_code}", status_code=resp.status_code)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
