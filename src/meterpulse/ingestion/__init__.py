"""Ingestion of interchange XML documents."""

from meterpulse.ingestion.interchange import InterchangeParser
from meterpulse.ingestion.source import DocumentSource, SourceError

__all__ = ["InterchangeParser", "DocumentSource", "SourceError"]
