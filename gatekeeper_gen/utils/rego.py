"""Minimal reader for Rego policy files.

The generator does not evaluate Rego. It only needs the package clause,
the ``data`` imports, the comment blocks and the names of top level
rules, all of which can be read line by line.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import List, Union

from .errors import DiscoveryError
from .models import RegoFile

LOGGER = logging.getLogger(__name__)

REGO_SUFFIX = ".rego"
TEST_SUFFIX = "_test.rego"
SKIPPED_DIRS = {".git"}

_PACKAGE_RE = re.compile(r"^package\s+([\w.]+)")
_IMPORT_RE = re.compile(r"^import\s+data\.([\w.]+)")
_RULE_RE = re.compile(r"^([A-Za-z_]\w*)\s*(?:\[|\{|=|:=|if\b|contains\b)")
_KEYWORDS = {"package", "import", "default", "else", "not", "some", "with"}


def parse_rego(path: Union[str, Path], contents: str) -> RegoFile:
    """Build a :class:`RegoFile` from the text of a Rego source file."""

    package_name = ""
    imports: List[str] = []
    rules: List[str] = []
    comments: List[str] = []
    block: List[str] = []

    for line in contents.splitlines():
        stripped = line.strip()
        if stripped.startswith("#"):
            block.append(stripped.lstrip("#").strip())
            continue
        if block:
            comments.append("\n".join(block))
            block = []

        match = _PACKAGE_RE.match(line)
        if match:
            package_name = match.group(1)
            continue
        match = _IMPORT_RE.match(line)
        if match:
            imports.append(match.group(1))
            continue
        if line.startswith("default "):
            line = line[len("default "):]
        match = _RULE_RE.match(line)
        if match and match.group(1) not in _KEYWORDS and match.group(1) not in rules:
            rules.append(match.group(1))

    if block:
        comments.append("\n".join(block))

    return RegoFile(
        file_path=Path(path),
        contents=contents,
        package_name=package_name,
        import_packages=imports,
        comments=comments,
        rules=rules,
    )


def read_file(path: Union[str, Path]) -> RegoFile:
    """Read and parse the Rego file at ``path``.

    Raises:
        DiscoveryError: If the file cannot be read.
    """

    try:
        contents = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DiscoveryError("read file", path) from exc
    return parse_rego(path, contents)


def on_walk_error(exc: OSError) -> None:
    raise DiscoveryError("walk path", exc.filename) from exc


def find_rego_paths(root: Union[str, Path]) -> List[Path]:
    """Return every non-test Rego file under ``root`` in sorted order."""

    root = Path(root)
    if not root.exists():
        raise DiscoveryError("walk path", root)
    if root.is_file():
        return [root] if _is_policy_file(root.name) else []

    paths: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_walk_error):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRS)
        for name in sorted(filenames):
            if _is_policy_file(name):
                paths.append(Path(dirpath) / name)
    return paths


def _is_policy_file(name: str) -> bool:
    return name.endswith(REGO_SUFFIX) and not name.endswith(TEST_SUFFIX)


def get_files(root: Union[str, Path]) -> List[RegoFile]:
    """Read every Rego file under ``root``."""

    files = [read_file(path) for path in find_rego_paths(root)]
    LOGGER.debug("Read %d rego files under %s", len(files), root)
    return files


def get_files_with_rule(root: Union[str, Path], rule: str) -> List[RegoFile]:
    """Read the Rego files under ``root`` that declare a rule named ``rule``."""

    files = [f for f in get_files(root) if f.has_rule(rule)]
    LOGGER.info("Found %d policies with rule %r under %s", len(files), rule, root)
    return files
