"""Typed models for policies, match rules and generated Gatekeeper resources.

This module defines the Pydantic models used throughout the generator.
Policy and library files are described by :class:`RegoFile`, annotation
comments become :class:`KindMatcher` entries grouped in a
:class:`MatcherSet`, and the two documents produced per policy are
:class:`ConstraintTemplateDoc` and :class:`ConstraintDoc`.

Example:
    >>> from gatekeeper_gen.utils.models import ConstraintDoc, RestrictedMatch
    >>> constraint = ConstraintDoc(
    ...     kind="ContainerLimits",
    ...     match=RestrictedMatch(api_groups=[""], kinds=["Pod"]),
    ... )
    >>> constraint.to_document()["metadata"]["name"]
    'containerlimits'
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

TEMPLATE_API_VERSION = "templates.gatekeeper.sh/v1beta1"
TEMPLATE_KIND = "ConstraintTemplate"
CONSTRAINT_API_VERSION = "constraints.gatekeeper.sh/v1beta1"
TARGET_NAME = "admission.k8s.gatekeeper.sh"
CORE_API_GROUP = "core"
DRYRUN_ACTION = "dryrun"


class RegoFile(BaseModel):
    """A Rego source file as seen by the generator.

    Attributes:
        file_path: Location of the file on disk.
        contents: Raw (or, for libraries, comment-stripped) file text.
        package_name: Declared package without the ``data.`` prefix.
        import_packages: Imported ``data`` packages in declaration order.
        comments: Comment blocks in file order with ``#`` markers removed.
        rules: Names of the rules declared in the file.
    """

    model_config = ConfigDict(frozen=True)

    file_path: Path = Field(..., description="Location of the file on disk.")
    contents: str = Field(..., description="Text of the file.")
    package_name: str = Field("", description="Declared package name.")
    import_packages: List[str] = Field(
        default_factory=list, description="Imported data packages in order."
    )
    comments: List[str] = Field(
        default_factory=list, description="Comment blocks in file order."
    )
    rules: List[str] = Field(
        default_factory=list, description="Names of rules declared in the file."
    )

    def has_rule(self, name: str) -> bool:
        """Return ``True`` when the file declares a rule called ``name``."""
        return name in self.rules


class KindMatcher(BaseModel):
    """One ``apiGroup/kind`` pair taken from an ``@kinds`` annotation."""

    model_config = ConfigDict(frozen=True)

    api_group: str
    kind: str


class MatcherSet(BaseModel):
    """Ordered collection of :class:`KindMatcher` for one policy."""

    kind_matchers: List[KindMatcher] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.kind_matchers

    def api_groups(self) -> List[str]:
        """Return distinct API groups in first-seen order.

        The ``core`` sentinel is written as the empty string, which is how
        Kubernetes names the core group.
        """
        groups: List[str] = []
        for matcher in self.kind_matchers:
            group = "" if matcher.api_group == CORE_API_GROUP else matcher.api_group
            if group not in groups:
                groups.append(group)
        return groups

    def kinds(self) -> List[str]:
        return [matcher.kind for matcher in self.kind_matchers]


class ConstraintTemplateDoc(BaseModel):
    """Gatekeeper ``ConstraintTemplate`` holding the policy logic."""

    kind: str = Field(..., min_length=1, description="Kind of the constraint CRD.")
    libs: List[str] = Field(
        default_factory=list, description="Comment-stripped library bodies."
    )
    rego: str = Field(..., description="Comment-stripped policy text.")

    @property
    def name(self) -> str:
        return self.kind.lower()

    def to_document(self) -> Dict[str, Any]:
        """Return the resource as a plain mapping ready for YAML output."""
        target: Dict[str, Any] = {"target": TARGET_NAME, "rego": self.rego}
        if self.libs:
            target["libs"] = list(self.libs)
        return {
            "apiVersion": TEMPLATE_API_VERSION,
            "kind": TEMPLATE_KIND,
            "metadata": {"name": self.name},
            "spec": {
                "crd": {"spec": {"names": {"kind": self.kind}}},
                "targets": [target],
            },
        }


class UnrestrictedMatch(BaseModel):
    """Constraint applies to every resource; no ``match`` block is emitted."""

    type: Literal["unrestricted"] = "unrestricted"


class RestrictedMatch(BaseModel):
    """Constraint applies only to the listed API groups and kinds."""

    type: Literal["restricted"] = "restricted"
    api_groups: List[str]
    kinds: List[str] = Field(..., min_length=1)


ConstraintMatch = Annotated[
    Union[UnrestrictedMatch, RestrictedMatch], Field(discriminator="type")
]


class ConstraintDoc(BaseModel):
    """Gatekeeper constraint selecting the resources a template applies to."""

    kind: str = Field(..., min_length=1, description="Kind defined by the template.")
    enforcement_action: Optional[str] = Field(
        None, description="Override for the Gatekeeper enforcement action."
    )
    match: ConstraintMatch = Field(default_factory=UnrestrictedMatch)

    @property
    def name(self) -> str:
        return self.kind.lower()

    def to_document(self) -> Dict[str, Any]:
        """Return the resource as a plain mapping ready for YAML output.

        ``spec`` only appears when it has content: an enforcement action
        override, a match block, or both.
        """
        spec: Dict[str, Any] = {}
        if self.enforcement_action is not None:
            spec["enforcementAction"] = self.enforcement_action
        if isinstance(self.match, RestrictedMatch):
            spec["match"] = {
                "kinds": [
                    {
                        "apiGroups": list(self.match.api_groups),
                        "kinds": list(self.match.kinds),
                    }
                ]
            }

        document: Dict[str, Any] = {
            "apiVersion": CONSTRAINT_API_VERSION,
            "kind": self.kind,
            "metadata": {"name": self.name},
        }
        if spec:
            document["spec"] = spec
        return document


class GenerationConfig(BaseModel):
    """Run-wide settings threaded through the driver and synthesizer.

    Attributes:
        output_dir: Shared output directory; ``None`` writes each policy's
            resources next to the policy itself.
        dry_run: Set ``enforcementAction: dryrun`` on every constraint.
    """

    model_config = ConfigDict(frozen=True)

    output_dir: Optional[Path] = Field(
        None, description="Shared output directory for flat mode."
    )
    dry_run: bool = Field(
        False, description="Generate constraints in dryrun enforcement mode."
    )

    @property
    def enforcement_action(self) -> Optional[str]:
        return DRYRUN_ACTION if self.dry_run else None


class GeneratedArtifact(BaseModel):
    """One output file planned by the driver."""

    model_config = ConfigDict(frozen=True)

    artifact: Literal["template", "constraint"]
    kind: str
    path: Path
    content: str
