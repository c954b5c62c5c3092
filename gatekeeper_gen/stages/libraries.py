"""Locate shared Rego libraries and match them to policy imports."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from gatekeeper_gen.utils import rego
from gatekeeper_gen.utils.errors import DiscoveryError, MissingLibrariesError
from gatekeeper_gen.utils.models import RegoFile
from gatekeeper_gen.utils.text import strip_comments

LOGGER = logging.getLogger(__name__)

LIBRARY_FOLDER_NAMES = ("lib", "libs", "util", "utils")


def get_library_path(root: Union[str, Path]) -> Optional[Path]:
    """Return the first library folder found while walking ``root``.

    The walk is depth first with directories in sorted order, and ``.git``
    is never entered. Library folders found after the first one are
    ignored.
    """

    if not Path(root).exists():
        raise DiscoveryError("walk path", root)
    if not Path(root).is_dir():
        return None

    library_path: Optional[Path] = None
    for dirpath, dirnames, _ in os.walk(root, onerror=rego.on_walk_error):
        dirnames[:] = sorted(d for d in dirnames if d not in rego.SKIPPED_DIRS)
        current = Path(dirpath)
        if current.name not in LIBRARY_FOLDER_NAMES:
            continue
        if library_path is None:
            library_path = current
        else:
            LOGGER.debug(
                "Ignoring library folder %s; already using %s", current, library_path
            )
    return library_path


def get_libraries(root: Union[str, Path]) -> List[RegoFile]:
    """Return the comment-stripped libraries available to policies under ``root``."""

    library_path = get_library_path(root)
    if library_path is None:
        LOGGER.info("No library folder found under %s", root)
        return []

    libraries = [
        library.model_copy(update={"contents": strip_comments(library.contents)})
        for library in rego.get_files(library_path)
    ]
    LOGGER.info("Loaded %d libraries from %s", len(libraries), library_path)
    return libraries


def get_matching_libraries(policy: RegoFile, libraries: List[RegoFile]) -> List[str]:
    """Return library bodies whose package matches an import of ``policy``.

    Results follow the policy's import order.
    """

    matches: List[str] = []
    for import_package in policy.import_packages:
        for library in libraries:
            if library.package_name == import_package:
                LOGGER.debug(
                    "Import %s of %s resolved to %s",
                    import_package,
                    policy.file_path,
                    library.file_path,
                )
                matches.append(library.contents)
    return matches


def resolve_libraries(policy: RegoFile, libraries: List[RegoFile]) -> List[str]:
    """Return the libraries of ``policy``, requiring one per import.

    Raises:
        MissingLibrariesError: If the resolved count differs from the
            number of imports.
    """

    matches = get_matching_libraries(policy, libraries)
    if len(matches) != len(policy.import_packages):
        LOGGER.error(
            "Policy %s imports %d packages but %d libraries matched",
            policy.file_path,
            len(policy.import_packages),
            len(matches),
        )
        raise MissingLibrariesError("missing imported libraries")
    return matches
