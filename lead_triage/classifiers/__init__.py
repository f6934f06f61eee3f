"""
Email classifiers module.

Both pipeline classifiers are backed by Gemini.
"""

from lead_triage.classifiers.base import BaseTriageClassifier, BaseExtractionClassifier
from lead_triage.classifiers.gemini import (
    GeminiTriageClassifier,
    GeminiExtractionClassifier,
    build_client,
)


def get_triage_classifier() -> BaseTriageClassifier:
    """Get the triage classifier configured from settings."""
    return GeminiTriageClassifier()


def get_extraction_classifier() -> BaseExtractionClassifier:
    """Get the deep extraction classifier configured from settings."""
    return GeminiExtractionClassifier()


__all__ = [
    "BaseTriageClassifier",
    "BaseExtractionClassifier",
    "GeminiTriageClassifier",
    "GeminiExtractionClassifier",
    "build_client",
    "get_triage_classifier",
    "get_extraction_classifier",
]
