"""Prompt templates for the Gemini classifiers."""
