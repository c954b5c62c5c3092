"""Build the Gatekeeper template and constraint documents for a policy.

The functions here are pure: given a policy, its resolved libraries and
the run configuration they always return the same documents, and
:func:`render_yaml` always returns the same text for a document.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from gatekeeper_gen.stages.kind import get_kind_from_path
from gatekeeper_gen.stages.matchers import get_matchers_from_comments
from gatekeeper_gen.utils.errors import SynthesisError
from gatekeeper_gen.utils.models import (
    ConstraintDoc,
    ConstraintMatch,
    ConstraintTemplateDoc,
    GenerationConfig,
    MatcherSet,
    RegoFile,
    RestrictedMatch,
    UnrestrictedMatch,
)
from gatekeeper_gen.utils.text import strip_comments

LOGGER = logging.getLogger(__name__)


class _BlockDumper(yaml.SafeDumper):
    """Safe dumper that writes multi-line strings as literal blocks."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_BlockDumper.add_representer(str, _represent_str)


def get_constraint_template(policy: RegoFile, libraries: List[str]) -> ConstraintTemplateDoc:
    """Return the ``ConstraintTemplate`` for ``policy``.

    ``libraries`` are embedded as given; callers pass the comment-stripped
    bodies returned by the library resolver.

    Raises:
        SynthesisError: If the template cannot be built.
    """

    try:
        return ConstraintTemplateDoc(
            kind=get_kind_from_path(policy.file_path),
            libs=libraries,
            rego=strip_comments(policy.contents),
        )
    except ValidationError as exc:
        raise SynthesisError("template", "build") from exc


def build_match(matchers: MatcherSet) -> ConstraintMatch:
    """Translate parsed matchers into the constraint match variant."""

    if matchers.is_empty():
        return UnrestrictedMatch()
    return RestrictedMatch(api_groups=matchers.api_groups(), kinds=matchers.kinds())


def get_constraint(policy: RegoFile, config: GenerationConfig) -> ConstraintDoc:
    """Return the constraint for ``policy``.

    ``enforcementAction`` is only present when ``config`` asks for dryrun,
    and the match block is only present when the policy has ``@kinds``
    annotations.

    Raises:
        SynthesisError: If the constraint or its matchers cannot be built.
    """

    kind = get_kind_from_path(policy.file_path)
    try:
        match = build_match(get_matchers_from_comments(policy.comments))
    except ValidationError as exc:
        raise SynthesisError("constraint", "set matchers for") from exc

    try:
        constraint = ConstraintDoc(
            kind=kind,
            enforcement_action=config.enforcement_action,
            match=match,
        )
    except ValidationError as exc:
        raise SynthesisError("constraint", "build") from exc

    LOGGER.debug(
        "Built constraint %s (enforcementAction=%s, match=%s)",
        constraint.name,
        constraint.enforcement_action,
        constraint.match.type,
    )
    return constraint


def render_yaml(document: Dict[str, Any], name: str) -> str:
    """Serialise ``document`` to YAML with stable key order.

    Raises:
        SynthesisError: If the document cannot be represented as YAML.
    """

    try:
        return yaml.dump(
            document,
            Dumper=_BlockDumper,
            default_flow_style=False,
            sort_keys=True,
        )
    except yaml.YAMLError as exc:
        raise SynthesisError(name, "marshal") from exc
