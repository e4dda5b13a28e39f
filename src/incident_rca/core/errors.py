"""Exceptions raised to callers of the analysis pipeline."""

from __future__ import annotations


class InvalidRequestError(ValueError):
    """A request is missing required input and was rejected before any work."""
