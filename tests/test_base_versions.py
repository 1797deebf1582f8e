"""
Tests for base-version resolution.
"""

from unittest.mock import MagicMock

import pytest

from obsenv.domain import RepositoryIdentity
from obsenv.exit_codes import CloneError, ResolverError, RESOLVER_ERROR
from obsenv.infra.git_client import GitClient
from obsenv.services.base_versions import BaseVersionResolver, parse_manifest

from .conftest import requires_git

REGISTRY = [
    RepositoryIdentity("alpha", "rA"),
    RepositoryIdentity("beta", "rB"),
    RepositoryIdentity("gamma", "rC"),
]


class TestParseManifest:

    def test_top_level_mapping(self):
        versions = parse_manifest("beta: v2\nalpha: v1\n", REGISTRY)
        # Registry order, not manifest order
        assert list(versions.items()) == [("alpha", "v1"), ("beta", "v2")]

    def test_versions_key(self):
        text = "description: cycle 38\nversions:\n  gamma: 1a2b3c\n"
        assert parse_manifest(text, REGISTRY) == {"gamma": "1a2b3c"}

    def test_missing_repositories_are_left_out(self):
        versions = parse_manifest("alpha: v1\n", REGISTRY)
        assert "beta" not in versions
        assert "gamma" not in versions

    def test_unknown_repositories_are_ignored(self, caplog):
        versions = parse_manifest("alpha: v1\nzeta: v9\n", REGISTRY)
        assert versions == {"alpha": "v1"}
        assert "zeta" in caplog.text

    def test_empty_document(self):
        assert parse_manifest("", REGISTRY) == {}

    def test_unquoted_number_is_rejected(self):
        with pytest.raises(ResolverError, match="quoted"):
            parse_manifest("alpha: 1.10\n", REGISTRY)

    def test_unknown_repository_version_is_not_checked(self, caplog):
        versions = parse_manifest("alpha: v1\nzeta: 1.10\nnotes:\n", REGISTRY)
        assert versions == {"alpha": "v1"}
        assert "zeta" in caplog.text

    def test_empty_version_is_rejected(self):
        with pytest.raises(ResolverError):
            parse_manifest('alpha: ""\n', REGISTRY)

    def test_invalid_yaml(self):
        with pytest.raises(ResolverError) as exc_info:
            parse_manifest("alpha: [v1\n", REGISTRY)
        assert exc_info.value.exit_code == RESOLVER_ERROR

    def test_non_mapping(self):
        with pytest.raises(ResolverError):
            parse_manifest("- alpha\n- beta\n", REGISTRY)

    def test_default_registry(self):
        assert parse_manifest("ts_xml: v22.1.0\n") == {"ts_xml": "v22.1.0"}


class TestResolverWithMockedGit:

    def test_clone_failure_is_resolver_error(self):
        git = MagicMock(spec=GitClient)
        git.clone.side_effect = CloneError("Remote branch nope not found")
        resolver = BaseVersionResolver("rD", git_client=git, registry=REGISTRY)

        with pytest.raises(ResolverError, match="nope"):
            resolver.resolve("nope")

        _, kwargs = git.clone.call_args
        assert kwargs["branch"] == "nope"
        assert kwargs["depth"] == 1

    def test_missing_manifest_is_resolver_error(self):
        # Clone "succeeds" but writes nothing
        git = MagicMock(spec=GitClient)
        resolver = BaseVersionResolver("rD", git_client=git, registry=REGISTRY)
        with pytest.raises(ResolverError, match="base_env_versions.yaml"):
            resolver.resolve("main")

    def test_empty_branch_name(self):
        git = MagicMock(spec=GitClient)
        resolver = BaseVersionResolver("rD", git_client=git, registry=REGISTRY)
        with pytest.raises(ResolverError):
            resolver.resolve("")
        git.clone.assert_not_called()


@requires_git
class TestResolverWithDescriptorRepository:

    def test_resolve_main(self, descriptor, registry):
        resolver = BaseVersionResolver(str(descriptor), registry=registry)
        assert resolver.resolve("main") == {"alpha": "v1", "beta": "v2"}

    def test_resolve_other_branch(self, descriptor, registry):
        resolver = BaseVersionResolver(str(descriptor), registry=registry)
        assert resolver.resolve("cycle") == {"alpha": "v2"}

    def test_unknown_branch(self, descriptor, registry):
        resolver = BaseVersionResolver(str(descriptor), registry=registry)
        with pytest.raises(ResolverError):
            resolver.resolve("no-such-branch")

    def test_custom_manifest_file(self, descriptor, registry):
        resolver = BaseVersionResolver(str(descriptor), manifest_file="other.yaml",
                                       registry=registry)
        with pytest.raises(ResolverError, match="other.yaml"):
            resolver.resolve("main")
