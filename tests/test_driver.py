# tests/test_driver.py
"""Example CLI: pytest -vv tests/test_driver.py"""
from pathlib import Path

import pytest
import yaml

from gatekeeper_gen.stages import driver
from gatekeeper_gen.utils import rego
from gatekeeper_gen.utils.errors import MissingLibrariesError, OutputWriteError
from gatekeeper_gen.utils.models import GeneratedArtifact, GenerationConfig

POLICY = """# @title {title}
# {annotation}
package {package}

import data.lib.core

violation[msg] {{
    core.name == "bad"
    msg := "bad name"
}}
"""

LIBRARY = """# Shared helpers
package lib.core

# The object name
name = input.review.object.metadata.name
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _policy(root: Path, directory: str, annotation: str = "@kinds core/Pod") -> Path:
    package = directory.replace("/", "_").replace("-", "_")
    return _write(
        root / directory / "src.rego",
        POLICY.format(title=directory, annotation=annotation, package=package),
    )


class TestPlanOutputs:
    """Output location depends on whether an output directory is set."""

    @pytest.fixture()
    def policy(self, tmp_path):
        _policy(tmp_path, "required-labels")
        return rego.read_file(tmp_path / "required-labels" / "src.rego")

    def test_co_located(self, policy, tmp_path):
        out_dir, template, constraint = driver.plan_outputs(policy, GenerationConfig())
        assert out_dir == tmp_path / "required-labels"
        assert (template, constraint) == ("template.yaml", "constraint.yaml")

    def test_flat(self, policy, tmp_path):
        config = GenerationConfig(output_dir=tmp_path / "out")
        out_dir, template, constraint = driver.plan_outputs(policy, config)
        assert out_dir == tmp_path / "out"
        assert template == "template_RequiredLabels.yaml"
        assert constraint == "constraint_RequiredLabels.yaml"


class TestRunCreate:
    """End to end generation over a temporary policy tree."""

    @pytest.fixture()
    def tree(self, tmp_path):
        root = tmp_path / "policies"
        _write(root / "lib" / "core.rego", LIBRARY)
        _policy(root, "required-labels")
        _policy(root, "no-latest", annotation="@kinds apps/Deployment core/Pod apps/StatefulSet")
        _policy(root, "any-resource", annotation="no annotation here")
        return root

    def test_co_located_outputs(self, tree):
        artifacts = driver.run_create(tree, GenerationConfig())
        assert len(artifacts) == 6
        for name in ("required-labels", "no-latest", "any-resource"):
            assert (tree / name / "template.yaml").exists()
            assert (tree / name / "constraint.yaml").exists()

        constraint = yaml.safe_load((tree / "no-latest" / "constraint.yaml").read_text())
        assert constraint["kind"] == "NoLatest"
        assert constraint["metadata"]["name"] == "nolatest"
        assert constraint["spec"]["match"]["kinds"] == [
            {"apiGroups": ["apps", ""], "kinds": ["Deployment", "Pod", "StatefulSet"]}
        ]

        other = yaml.safe_load((tree / "required-labels" / "constraint.yaml").read_text())
        assert other["kind"] == "RequiredLabels"
        assert other["spec"]["match"]["kinds"][0]["kinds"] == ["Pod"]

    def test_no_matchers_no_match_block(self, tree):
        driver.run_create(tree, GenerationConfig())
        constraint = yaml.safe_load((tree / "any-resource" / "constraint.yaml").read_text())
        assert "spec" not in constraint

    def test_template_embeds_stripped_library(self, tree):
        driver.run_create(tree, GenerationConfig())
        template = yaml.safe_load((tree / "required-labels" / "template.yaml").read_text())
        target = template["spec"]["targets"][0]
        assert target["target"] == "admission.k8s.gatekeeper.sh"
        assert target["libs"] == ["package lib.core\n\nname = input.review.object.metadata.name\n"]
        assert "#" not in target["rego"]
        assert "violation[msg]" in target["rego"]

    def test_dryrun_on_every_constraint(self, tree):
        driver.run_create(tree, GenerationConfig(dry_run=True))
        for name in ("required-labels", "no-latest", "any-resource"):
            constraint = yaml.safe_load((tree / name / "constraint.yaml").read_text())
            assert constraint["spec"]["enforcementAction"] == "dryrun"

    def test_no_dryrun_field_without_flag(self, tree):
        driver.run_create(tree, GenerationConfig())
        for name in ("required-labels", "no-latest", "any-resource"):
            text = (tree / name / "constraint.yaml").read_text()
            assert "enforcementAction" not in text

    def test_flat_mode(self, tree, tmp_path):
        out = tmp_path / "generated" / "nested"
        driver.run_create(tree, GenerationConfig(output_dir=out))
        assert sorted(p.name for p in out.iterdir()) == [
            "constraint_AnyResource.yaml",
            "constraint_NoLatest.yaml",
            "constraint_RequiredLabels.yaml",
            "template_AnyResource.yaml",
            "template_NoLatest.yaml",
            "template_RequiredLabels.yaml",
        ]
        assert not (tree / "no-latest" / "template.yaml").exists()

    def test_flat_mode_kind_collision(self, tmp_path, caplog):
        root = tmp_path / "policies"
        _write(root / "lib" / "core.rego", LIBRARY)
        _policy(root, "team-a/required-labels", annotation="@kinds core/Pod")
        _policy(root, "team-b/required-labels", annotation="@kinds apps/Deployment")
        out = tmp_path / "out"

        artifacts = driver.run_create(root, GenerationConfig(output_dir=out))

        assert len(artifacts) == 4
        assert sorted(p.name for p in out.iterdir()) == [
            "constraint_RequiredLabels.yaml",
            "template_RequiredLabels.yaml",
        ]
        constraint = yaml.safe_load((out / "constraint_RequiredLabels.yaml").read_text())
        assert constraint["spec"]["match"]["kinds"][0]["kinds"] == ["Deployment"]
        warnings = [r.getMessage() for r in caplog.records if r.levelname == "WARNING"]
        assert len(warnings) == 2
        assert all("kind RequiredLabels" in message for message in warnings)

    def test_relative_root_inside_policy_directory(self, tree, monkeypatch):
        monkeypatch.chdir(tree / "any-resource")
        (tree / "any-resource" / "lib").mkdir()
        (tree / "lib" / "core.rego").rename(tree / "any-resource" / "lib" / "core.rego")

        artifacts = driver.run_create(".", GenerationConfig())

        assert [a.kind for a in artifacts] == ["AnyResource", "AnyResource"]
        constraint = yaml.safe_load((tree / "any-resource" / "constraint.yaml").read_text())
        assert constraint["metadata"]["name"] == "anyresource"

    def test_missing_library_writes_nothing(self, tree):
        _write(
            tree / "zz-broken" / "src.rego",
            "package broken\n\nimport data.lib.missing\n\nviolation[msg] {\n  msg := 1\n}\n",
        )
        with pytest.raises(MissingLibrariesError):
            driver.run_create(tree, GenerationConfig())
        assert not list(tree.rglob("*.yaml"))

    def test_rerun_is_byte_identical(self, tree):
        first = {a.path: a.path.read_bytes() for a in driver.run_create(tree, GenerationConfig())}
        second = {a.path: a.path.read_bytes() for a in driver.run_create(tree, GenerationConfig())}
        assert first == second

    def test_existing_files_overwritten(self, tree):
        target = tree / "required-labels" / "constraint.yaml"
        target.write_text("stale: true\n" * 50, encoding="utf-8")
        driver.run_create(tree, GenerationConfig())
        assert "stale" not in target.read_text()


class TestWriteArtifacts:
    """Write failures identify the artifact and path."""

    def test_directory_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file", encoding="utf-8")
        artifact = GeneratedArtifact(
            artifact="template",
            kind="A",
            path=blocker / "sub" / "template.yaml",
            content="x: 1\n",
        )
        with pytest.raises(OutputWriteError) as info:
            driver.write_artifacts([artifact])
        assert info.value.artifact == "output directory"
        assert isinstance(info.value.__cause__, OSError)

    def test_file_failure(self, tmp_path):
        (tmp_path / "constraint.yaml").mkdir()
        artifact = GeneratedArtifact(
            artifact="constraint",
            kind="A",
            path=tmp_path / "constraint.yaml",
            content="x: 1\n",
        )
        with pytest.raises(OutputWriteError) as info:
            driver.write_artifacts([artifact])
        assert info.value.artifact == "constraint"
        assert info.value.path == tmp_path / "constraint.yaml"
