"""Infrastructure ingestion: Overpass client, tag classifier, pipeline."""

from enodia_engine.ingest.classifier import classify, classify_batch
from enodia_engine.ingest.overpass import AREA_ID_OFFSET, AreaHandle, OverpassClient, to_area_id
from enodia_engine.ingest.pipeline import InfrastructureIngestor, IngestionOutcome, IngestionResult

__all__ = [
    "AREA_ID_OFFSET",
    "AreaHandle",
    "InfrastructureIngestor",
    "IngestionOutcome",
    "IngestionResult",
    "OverpassClient",
    "classify",
    "classify_batch",
    "to_area_id",
]
