"""Build-config sources — where BuildConfigWatcher gets its list from.

``BuildConfigSource`` is the inbound contract: one call returning the full
current list.  ``ApiBuildConfigSource`` implements it against the cluster
API with a shared ``httpx.AsyncClient``; pagination and auth, if any, are
its concern alone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from gitpoll.exceptions import FetchError
from gitpoll.logging import get_logger
from gitpoll.models import BuildConfig

log = get_logger(__name__)


class BuildConfigSource(ABC):
    """Returns the full current list of build configs."""

    @abstractmethod
    async def list_build_configs(self) -> list[BuildConfig]:
        """Fetch every build config.  Raises ``FetchError`` on failure."""

    async def close(self) -> None:
        """Release any held resources."""


class ApiBuildConfigSource(BuildConfigSource):
    """Lists build configs from ``{endpoint}/{build_configs_path}``."""

    def __init__(
        self,
        endpoint: str,
        path: str = "osapi/v1beta1/buildConfigs",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{endpoint.rstrip('/')}/{path.strip('/')}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def list_build_configs(self) -> list[BuildConfig]:
        try:
            resp = await self._client.get(self._url)
            resp.raise_for_status()
            body: Any = resp.json()
        except httpx.HTTPStatusError as exc:
            raise FetchError(self._url, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(self._url, str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise FetchError(self._url, f"invalid JSON: {exc}") from exc

        # "items": null is an empty list; a missing "items" key is malformed.
        if not isinstance(body, dict) or "items" not in body:
            raise FetchError(self._url, "response is not a BuildConfigList")
        items = body["items"] if body["items"] is not None else []
        if not isinstance(items, list):
            raise FetchError(self._url, "response is not a BuildConfigList")

        build_configs: list[BuildConfig] = []
        for item in items:
            try:
                build_configs.append(BuildConfig.from_api(item))
            except (ValueError, AttributeError) as exc:
                log.warning("build_config_skipped", url=self._url, error=str(exc))
        return build_configs

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
