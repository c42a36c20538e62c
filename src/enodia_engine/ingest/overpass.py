"""Overpass API client — area resolution and infrastructure geometry fetch.

Two POST round trips with a plain-text Overpass QL body:

1. ``resolve_area``: look up the administrative boundary by name and
   admin_level and turn its id into a queryable area id.
2. ``fetch_elements``: one ``out geom`` query scoped to that area, returning
   ways with their coordinates and tags embedded.

The client performs network I/O only and never touches layer state.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import httpx
from loguru import logger

from enodia_engine.errors import AreaNotFound, InvalidElement, UpstreamQueryFailed
from enodia_engine.layers.layer import InfrastructureCategory, RawGeometryElement

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_USER_AGENT = "ENODIA-INFRA/0.1.0"

# Overpass area ids for relations are the relation id plus this offset.
AREA_ID_OFFSET = 3_600_000_000

# Tag selectors per category; a way matching any selector is fetched.
TAG_FILTERS: dict[InfrastructureCategory, tuple[str, ...]] = {
    InfrastructureCategory.ELECTRICITY: (
        '["power"="line"]',
        '["power"="minor_line"]',
    ),
    InfrastructureCategory.WATER: (
        '["man_made"="pipeline"]["pipeline"="water"]',
        '["man_made"="pipeline"]["substance"="water"]',
        '["utility"="water"]',
    ),
    InfrastructureCategory.ROAD: ('["highway"]',),
    InfrastructureCategory.RAIL: ('["railway"]',),
}


def to_area_id(raw_id: int) -> int:
    """Convert a relation id to an Overpass area id.

    Ids already at or above ``AREA_ID_OFFSET`` are returned unchanged, so
    ``to_area_id(to_area_id(x)) == to_area_id(x)``.
    """
    raw_id = int(raw_id)
    return raw_id if raw_id >= AREA_ID_OFFSET else raw_id + AREA_ID_OFFSET


@dataclass(frozen=True)
class AreaHandle:
    """A resolved, queryable administrative area."""

    area_id: int
    name: str
    admin_level: int


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_area_query(area_name: str, admin_level: int, timeout: int = 25) -> str:
    """Overpass QL returning the ids of matching administrative areas."""
    return (
        f"[out:json][timeout:{timeout}];\n"
        f'area["name"="{_quote(area_name)}"]["boundary"="administrative"]'
        f'["admin_level"="{int(admin_level)}"];\n'
        f"out ids;"
    )


def build_fetch_query(
    area: AreaHandle,
    categories: Iterable[InfrastructureCategory],
    timeout: int = 50,
) -> str:
    """Overpass QL returning all filtered ways in ``area`` with geometry."""
    selectors = []
    for category in categories:
        for tag_filter in TAG_FILTERS.get(InfrastructureCategory(category), ()):
            selectors.append(f"  way{tag_filter}(area.searchArea);")
    if not selectors:
        raise ValueError("No tag filters for the requested categories")
    return (
        f"[out:json][timeout:{timeout}];\n"
        f"area({area.area_id})->.searchArea;\n"
        f"(\n" + "\n".join(selectors) + "\n);\n"
        f"out geom;"
    )


class OverpassClient:
    """Async client for the Overpass interpreter endpoint.

    Args:
        url: Interpreter endpoint.
        timeout: HTTP timeout in seconds.
        user_agent: Sent with every request.
        area_query_timeout: Server-side ``[timeout:N]`` for the area lookup.
        fetch_query_timeout: Server-side ``[timeout:N]`` for the geometry fetch.
        client: Optional shared ``httpx.AsyncClient``.  When omitted, each
            request opens its own client.
    """

    def __init__(
        self,
        url: str = DEFAULT_OVERPASS_URL,
        *,
        timeout: float = 60.0,
        user_agent: str = DEFAULT_USER_AGENT,
        area_query_timeout: int = 25,
        fetch_query_timeout: int = 50,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent
        self.area_query_timeout = area_query_timeout
        self.fetch_query_timeout = fetch_query_timeout
        self._client = client

    async def resolve_area(self, area_name: str, admin_level: int) -> AreaHandle:
        """Resolve an administrative boundary to a queryable area.

        Raises:
            AreaNotFound: If the lookup returns no elements.
            UpstreamQueryFailed: On a non-2xx response or transport error.
        """
        query = build_area_query(area_name, admin_level, self.area_query_timeout)
        elements = await self._post(query)
        if not elements:
            raise AreaNotFound(area_name, admin_level)
        raw_id = elements[0].get("id") if isinstance(elements[0], dict) else None
        try:
            area_id = to_area_id(raw_id)
        except (TypeError, ValueError) as e:
            raise UpstreamQueryFailed(None, f"Area element without usable id: {elements[0]!r}") from e
        logger.info(f"Resolved area {area_name!r} (admin_level={admin_level}) -> {area_id}")
        return AreaHandle(area_id=area_id, name=area_name, admin_level=int(admin_level))

    async def fetch_elements(
        self,
        area: AreaHandle,
        categories: Iterable[InfrastructureCategory] = tuple(TAG_FILTERS),
    ) -> list[RawGeometryElement]:
        """Fetch every way in ``area`` matching the categories' tag filters.

        Non-way elements are ignored.  Malformed ways are logged and skipped.

        Raises:
            UpstreamQueryFailed: On a non-2xx response or transport error.
        """
        query = build_fetch_query(area, categories, self.fetch_query_timeout)
        elements = []
        for el in await self._post(query):
            if not isinstance(el, dict) or el.get("type") != "way":
                continue
            try:
                elements.append(RawGeometryElement.from_overpass(el))
            except InvalidElement as e:
                logger.warning(f"Skipping element: {e}")
        logger.info(f"Fetched {len(elements)} ways for area {area.area_id}")
        return elements

    async def _post(self, query: str) -> list:
        """POST one query and return its ``elements`` list."""
        headers = {"Content-Type": "text/plain", "User-Agent": self.user_agent}
        try:
            if self._client is not None:
                resp = await self._client.post(
                    self.url, content=query, headers=headers, timeout=self.timeout,
                )
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.post(
                        self.url, content=query, headers=headers, timeout=self.timeout,
                    )
        except httpx.TransportError as e:
            logger.warning(f"Overpass request failed: {e}")
            raise UpstreamQueryFailed(None, str(e)) from e

        if not resp.is_success:
            logger.warning(f"Overpass returned {resp.status_code}")
            raise UpstreamQueryFailed(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamQueryFailed(resp.status_code, f"Invalid JSON: {e}") from e
        elements = (data.get("elements") or []) if isinstance(data, dict) else None
        if not isinstance(elements, list):
            raise UpstreamQueryFailed(resp.status_code, f"Unexpected response body: {resp.text[:200]}")
        return elements
