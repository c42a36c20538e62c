"""Error taxonomy for infrastructure ingestion.

None of these are fatal to the process.  Upstream errors are caught at the
ingestion boundary (see ``enodia_engine.ingest.pipeline``) and turned into an
``IngestionResult``; per-element errors are contained by the classifier.
"""

from __future__ import annotations


class InfrastructureError(Exception):
    """Base class for all engine errors."""


class AreaNotFound(InfrastructureError):
    """The area lookup returned zero matching elements."""

    def __init__(self, area_name: str, admin_level: int) -> None:
        super().__init__(
            f"No administrative area named {area_name!r} at admin_level={admin_level}"
        )
        self.area_name = area_name
        self.admin_level = admin_level


class UpstreamQueryFailed(InfrastructureError):
    """The geodata query service failed or answered with an unusable body.

    ``status`` is the HTTP status when one is known, and None when no usable
    response was produced (timeout, connection refused, area without id).
    """

    def __init__(self, status: int | None, body: str) -> None:
        super().__init__(f"Upstream query failed (status={status}): {body[:200]}")
        self.status = status
        self.body = body


class InvalidElement(InfrastructureError):
    """A raw element cannot become a LineFeature (degenerate geometry)."""

    def __init__(self, element_id: object, reason: str) -> None:
        super().__init__(f"Invalid element {element_id!r}: {reason}")
        self.element_id = element_id
        self.reason = reason


class StaleResponse(InfrastructureError):
    """A result arrived after a newer operation was started."""

    def __init__(self, generation: int, latest: int) -> None:
        super().__init__(f"Result of generation {generation} superseded by {latest}")
        self.generation = generation
        self.latest = latest
