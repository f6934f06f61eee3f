"""Core modules for the lead pipeline."""

from .logging import configure_logging, get_logger, bind_context, clear_context
from .exceptions import (
    PipelineError,
    IngestionError,
    ConnectivityError,
    ProtocolError,
    PersistenceError,
    MalformedJobError,
)
from .models import (
    RawItem,
    TriageIntent,
    TriageVerdict,
    CompositeJob,
    ExtractionIntent,
    BoardBasis,
    ExtractionResult,
    ProcessingMetadata,
    FinalRecord,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "PipelineError",
    "IngestionError",
    "ConnectivityError",
    "ProtocolError",
    "PersistenceError",
    "MalformedJobError",
    "RawItem",
    "TriageIntent",
    "TriageVerdict",
    "CompositeJob",
    "ExtractionIntent",
    "BoardBasis",
    "ExtractionResult",
    "ProcessingMetadata",
    "FinalRecord",
]
