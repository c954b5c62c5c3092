"""Derive the constraint Kind from where a policy lives."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Union

_SEPARATOR_RE = re.compile(r"[^0-9A-Za-z]+")


def get_kind_from_path(path: Union[str, Path]) -> str:
    """Return the Kind for the policy file at ``path``.

    The Kind is built from the name of the directory holding the policy:
    every run of non-alphanumeric characters separates a word, each word
    gets an upper-case first letter and the words are joined, so
    ``container-deny_privileged/src.rego`` gives ``ContainerDenyPrivileged``.
    The path is resolved first, so a policy given relative to its own
    directory still gets the Kind of that directory. Sibling trees with
    equal directory names share a Kind.
    """

    directory = Path(path).resolve().parent.name
    words = [word for word in _SEPARATOR_RE.split(directory) if word]
    return "".join(word[:1].upper() + word[1:] for word in words)
