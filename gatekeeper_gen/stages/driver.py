"""Generate Gatekeeper resources for every policy in a directory tree.

Generation happens in two passes. :func:`build_artifacts` discovers the
policies, resolves their libraries and renders both documents for each of
them in memory; :func:`write_artifacts` then writes the files. Any failure
in the first pass therefore stops the run before a single file is
touched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Tuple, Union

from gatekeeper_gen.stages import libraries as library_resolver
from gatekeeper_gen.stages.kind import get_kind_from_path
from gatekeeper_gen.stages.synthesizer import (
    get_constraint,
    get_constraint_template,
    render_yaml,
)
from gatekeeper_gen.utils import rego
from gatekeeper_gen.utils.errors import OutputWriteError
from gatekeeper_gen.utils.models import GeneratedArtifact, GenerationConfig, RegoFile

LOGGER = logging.getLogger(__name__)

POLICY_RULE = "violation"
TEMPLATE_FILE_NAME = "template.yaml"
CONSTRAINT_FILE_NAME = "constraint.yaml"


# ---------------------------------------------------------------------------


def plan_outputs(policy: RegoFile, config: GenerationConfig) -> Tuple[Path, str, str]:
    """Return the output directory and file names for ``policy``.

    Without an output directory the files sit next to the policy under
    fixed names. With one, all files share that directory and carry the
    policy's Kind in their names.
    """

    if config.output_dir is None:
        return Path(policy.file_path).parent, TEMPLATE_FILE_NAME, CONSTRAINT_FILE_NAME

    kind = get_kind_from_path(policy.file_path)
    return (
        config.output_dir,
        f"template_{kind}.yaml",
        f"constraint_{kind}.yaml",
    )


def build_policy_artifacts(
    policy: RegoFile,
    libraries: List[RegoFile],
    config: GenerationConfig,
) -> List[GeneratedArtifact]:
    """Render the template and constraint files for a single policy."""

    matching = library_resolver.resolve_libraries(policy, libraries)
    output_dir, template_name, constraint_name = plan_outputs(policy, config)

    template = get_constraint_template(policy, matching)
    constraint = get_constraint(policy, config)
    return [
        GeneratedArtifact(
            artifact="template",
            kind=template.kind,
            path=output_dir / template_name,
            content=render_yaml(template.to_document(), "template"),
        ),
        GeneratedArtifact(
            artifact="constraint",
            kind=constraint.kind,
            path=output_dir / constraint_name,
            content=render_yaml(constraint.to_document(), "constraint"),
        ),
    ]


def build_artifacts(
    root: Union[str, Path], config: GenerationConfig
) -> List[GeneratedArtifact]:
    """Render every output file for the policies under ``root``.

    Nothing is written to disk.

    Raises:
        GenerationError: On the first discovery, resolution or synthesis
            failure.
    """

    policies = rego.get_files_with_rule(root, POLICY_RULE)
    libraries = library_resolver.get_libraries(root)

    artifacts: List[GeneratedArtifact] = []
    seen: Dict[Path, Tuple[str, Path]] = {}
    for policy in policies:
        LOGGER.info("Generating resources for %s", policy.file_path)
        for artifact in build_policy_artifacts(policy, libraries, config):
            previous = seen.get(artifact.path)
            if previous is not None:
                LOGGER.warning(
                    "%s for kind %s from %s overwrites kind %s from %s",
                    artifact.path,
                    artifact.kind,
                    policy.file_path,
                    *previous,
                )
            seen[artifact.path] = (artifact.kind, policy.file_path)
            artifacts.append(artifact)
    return artifacts


def write_artifacts(artifacts: List[GeneratedArtifact]) -> None:
    """Write ``artifacts`` to disk, creating directories as needed.

    Raises:
        OutputWriteError: If a directory or file cannot be written.
    """

    for artifact in artifacts:
        directory = artifact.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError("output directory", directory) from exc
        try:
            artifact.path.write_text(artifact.content, encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(artifact.artifact, artifact.path) from exc
        LOGGER.info("Wrote %s %s", artifact.artifact, artifact.path)


# ---------------------------------------------------------------------------


def run_create(
    root: Union[str, Path], config: GenerationConfig
) -> List[GeneratedArtifact]:
    """Generate and write the Gatekeeper resources for the policies under ``root``.

    Returns
    -------
    List[GeneratedArtifact]
        Every file written, in the order it was written.
    """

    artifacts = build_artifacts(root, config)
    write_artifacts(artifacts)
    LOGGER.info(
        "Generated %d files for %d policies",
        len(artifacts),
        len(artifacts) // 2,
    )
    return artifacts
