"""
Overpass ingestion client (OpenStreetMap facility data).

This module is responsible only for:
- rendering a layer's query template for a bounding box,
- POSTing it to the Overpass interpreter,
- classifying failures into `FetchError` values (network / timeout / parse),
- parsing elements into `Facility` records.

It performs no retries and no caching: a failed fetch surfaces to the caller, and the
next viewport change or an explicit user action is what triggers another attempt.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from watermap.config.settings import Settings
from watermap.core.geo import BoundingBox
from watermap.core.http import post_form
from watermap.core.result import Err, Ok, Result
from watermap.domain.errors import FetchError, FetchErrorKind
from watermap.domain.models import Facility
from watermap.ingestion.queries import QueryTemplate
from watermap.ingestion.transformers import element_to_facility

logger = logging.getLogger(__name__)


class OverpassClient:
    """Async Overpass API client returning `Result` values."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self._url = settings.overpass.url
        self._timeout_seconds = float(settings.overpass.timeout_seconds)
        self._transport = transport

    async def _post_query(self, query: str) -> Any:
        return await post_form(
            self._url,
            data={"data": query},
            timeout_seconds=self._timeout_seconds,
            transport=self._transport,
        )

    async def fetch_facilities(
        self, query: QueryTemplate, bounds: BoundingBox
    ) -> Result[list[Facility], FetchError]:
        """Fetch facilities of `query.layer` inside `bounds` (source order preserved)."""
        rendered = query.render(bounds)
        logger.info("Fetching %s facilities for bbox=%s", query.layer, bounds.as_overpass())

        try:
            payload = await self._post_query(rendered)
        except httpx.TimeoutException:
            return Err(
                FetchError(
                    FetchErrorKind.TIMEOUT,
                    f"Request timed out after {self._timeout_seconds:g} seconds",
                )
            )
        except httpx.HTTPStatusError as exc:
            return Err(FetchError(FetchErrorKind.NETWORK, f"HTTP error! status: {exc.response.status_code}"))
        except httpx.HTTPError as exc:
            return Err(FetchError(FetchErrorKind.NETWORK, str(exc) or exc.__class__.__name__))
        except ValueError as exc:
            return Err(FetchError(FetchErrorKind.PARSE, f"Response is not valid JSON: {exc}"))

        return parse_elements(payload, query.layer)


def parse_elements(payload: Any, layer: str) -> Result[list[Facility], FetchError]:
    """Parse an Overpass JSON payload into facilities for `layer`."""
    if not isinstance(payload, dict):
        return Err(FetchError(FetchErrorKind.PARSE, "Expected a JSON object from Overpass."))
    elements = payload.get("elements")
    if not isinstance(elements, list):
        return Err(FetchError(FetchErrorKind.PARSE, "Overpass response has no 'elements' list."))

    facilities: list[Facility] = []
    skipped = 0
    for element in elements:
        if not isinstance(element, dict):
            return Err(FetchError(FetchErrorKind.PARSE, f"Unexpected element of type {type(element).__name__}."))
        try:
            facility = element_to_facility(element, layer)
        except (KeyError, TypeError, ValueError):
            facility = None
        if facility is None:
            skipped += 1
            continue
        facilities.append(facility)

    if skipped:
        logger.debug("Skipped %s %s elements without a usable id/position.", skipped, layer)
    return Ok(facilities)
