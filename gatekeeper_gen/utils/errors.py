"""Exceptions raised while generating Gatekeeper resources.

Every error is fatal for the whole run; callers are expected to let them
propagate up to the command line which reports the message and exits.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class GenerationError(Exception):
    """Base class for all generator failures."""


class DiscoveryError(GenerationError):
    """Raised when walking or reading the policy tree fails."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        self.path = path
        if path is not None:
            message = f"{message}: {path}"
        super().__init__(message)


class MissingLibrariesError(GenerationError):
    """Raised when a policy imports a package no library provides."""


class SynthesisError(GenerationError):
    """Raised when a template or constraint document cannot be built."""

    def __init__(self, document: str, step: str) -> None:
        self.document = document
        self.step = step
        super().__init__(f"{step} {document}")


class OutputWriteError(GenerationError):
    """Raised when an output directory or file cannot be written."""

    def __init__(self, artifact: str, path: Union[str, Path]) -> None:
        self.artifact = artifact
        self.path = path
        super().__init__(f"writing {artifact}: {path}")
