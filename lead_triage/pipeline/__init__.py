"""Pipeline stages and their wiring."""

from .producer import IngestionProducer
from .workers import BaseWorker, TriageWorker, ExtractionWorker

__all__ = ["IngestionProducer", "BaseWorker", "TriageWorker", "ExtractionWorker"]
