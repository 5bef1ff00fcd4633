"""Tests for shared-workspace staging."""

import re
import shutil

import pytest

from contract_scope.augmentation.workspace import (
    DEFAULT_SHARED_WORKSPACE,
    SHARED_WORKSPACE_ENV,
    generate_workspace_id,
    remove_workspace,
    shared_workspace_base,
    stage_workspace,
)
from contract_scope.exceptions import AugmentationError, InvalidPathError


class TestSharedWorkspaceBase:
    def test_explicit_base_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv(SHARED_WORKSPACE_ENV, "/elsewhere")
        assert shared_workspace_base(tmp_path) == tmp_path

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv(SHARED_WORKSPACE_ENV, "/mnt/shared")
        assert str(shared_workspace_base()) == "/mnt/shared"

    def test_default(self, monkeypatch):
        monkeypatch.delenv(SHARED_WORKSPACE_ENV, raising=False)
        assert str(shared_workspace_base("")) == DEFAULT_SHARED_WORKSPACE


class TestGenerateWorkspaceId:
    def test_sanitised_name_and_base36_suffix(self):
        workspace_id = generate_workspace_id("my repo/../x")
        assert re.fullmatch(r"my-repo-\.\.-x-[0-9a-z]+", workspace_id)

    def test_keeps_safe_characters(self):
        assert generate_workspace_id("vault_v2.1").startswith("vault_v2.1-")


class TestStageWorkspace:
    def test_copies_tree(self, make_repo, tmp_path):
        source = make_repo({"src/lib.rs": "fn a() {}", "Cargo.toml": "[package]\n"})
        base = tmp_path / "shared"

        result = stage_workspace(source, base=base, workspace_id="ws-1")

        assert result.workspace_id == "ws-1"
        assert result.shared_path == base / "ws-1"
        assert result.copied_files == 2
        assert (base / "ws-1" / "src" / "lib.rs").read_text() == "fn a() {}"

    def test_single_file_source(self, tmp_path):
        source = tmp_path / "lib.rs"
        source.write_text("fn a() {}")
        result = stage_workspace(source, base=tmp_path / "shared", workspace_id="one")
        assert (result.shared_path / "lib.rs").exists()
        assert result.copied_files == 1

    def test_generated_id(self, make_repo, tmp_path):
        source = make_repo({"lib.rs": ""}, name="vault")
        result = stage_workspace(source, base=tmp_path / "shared")
        assert result.workspace_id.startswith("vault-")

    def test_missing_source(self, tmp_path):
        with pytest.raises(InvalidPathError):
            stage_workspace(tmp_path / "missing", base=tmp_path / "shared")

    def test_existing_destination(self, make_repo, tmp_path):
        source = make_repo({"lib.rs": ""})
        (tmp_path / "shared" / "ws-1").mkdir(parents=True)
        with pytest.raises(AugmentationError):
            stage_workspace(source, base=tmp_path / "shared", workspace_id="ws-1")

    def test_failed_copy_leaves_no_partial_workspace(self, make_repo, tmp_path, monkeypatch):
        source = make_repo({"a.rs": "fn a() {}", "b.rs": "fn b() {}"})
        real_copy2 = shutil.copy2

        def flaky_copy2(src, dst, *args, **kwargs):
            if src.endswith("b.rs"):
                raise PermissionError(13, "denied", src)
            return real_copy2(src, dst, *args, **kwargs)

        monkeypatch.setattr(shutil, "copy2", flaky_copy2)
        with pytest.raises(AugmentationError):
            stage_workspace(source, base=tmp_path / "shared", workspace_id="ws-1")
        assert not (tmp_path / "shared" / "ws-1").exists()

    def test_remove_workspace(self, make_repo, tmp_path):
        source = make_repo({"lib.rs": ""})
        result = stage_workspace(source, base=tmp_path / "shared", workspace_id="ws-1")
        remove_workspace(result)
        assert not result.shared_path.exists()
        # A second removal only logs
        remove_workspace(result)
