"""Utility helper functions for the Gatekeeper generator."""

from .errors import (
    DiscoveryError,
    GenerationError,
    MissingLibrariesError,
    OutputWriteError,
    SynthesisError,
)
from .text import strip_comments

__all__ = [
    "DiscoveryError",
    "GenerationError",
    "MissingLibrariesError",
    "OutputWriteError",
    "SynthesisError",
    "strip_comments",
]
