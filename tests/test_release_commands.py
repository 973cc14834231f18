import httpx
import pytest

from conftest import CHANGELOG_MD, read_tree
from firmrel.config import BackupConfig, ReleaseConfig, RepositoryConfig
from firmrel.errors import ConflictError, FormatMismatchError, ValidationError
from firmrel.gitplugin import GitHubClient
from firmrel.release import commands as commands_module
from firmrel.release.commands import ReleaseCommands


@pytest.fixture
def release_config(firmware_tree, backup_root):
    return ReleaseConfig(
        repository=RepositoryConfig(path=str(firmware_tree)),
        backup=BackupConfig(root_dir=str(backup_root)),
    )


def branch_names(repo):
    return sorted(head.name for head in repo.heads)


class TestInit:

    @pytest.mark.asyncio
    async def test_patches_files_on_release_branch(self, firmware_repo, firmware_tree, release_config):
        result = await ReleaseCommands(release_config).init("1.2.4")

        assert firmware_repo.active_branch.name == "release/v1.2.4"
        assert len(result.files_changed) == 4
        assert "VERSION_STRING = 1.2.4" in (firmware_tree / "build/version.mk").read_text()
        changed = {item.a_path for item in firmware_repo.index.diff(None)}
        assert changed == {
            "build/release.sh",
            "build/version.mk",
            "modules/shared/system_module_version.mk",
            "system/inc/system_version.h",
        }

    @pytest.mark.asyncio
    async def test_failure_restores_tree_and_branch(self, firmware_repo, firmware_tree, release_config):
        original_branch = firmware_repo.active_branch.name
        header = firmware_tree / "system/inc/system_version.h"
        header.write_text("#define SYSTEM_VERSION SYSTEM_VERSION_v123\n")
        firmware_repo.index.add(["system/inc/system_version.h"])
        firmware_repo.index.commit("Break the header")
        before = read_tree(firmware_tree)

        with pytest.raises(FormatMismatchError):
            await ReleaseCommands(release_config).init("1.2.4")

        assert read_tree(firmware_tree) == before
        assert firmware_repo.active_branch.name == original_branch
        assert "release/v1.2.4" not in branch_names(firmware_repo)
        assert not firmware_repo.is_dirty(untracked_files=True)

    @pytest.mark.asyncio
    async def test_invalid_version(self, firmware_repo, firmware_tree, release_config):
        before = read_tree(firmware_tree)
        with pytest.raises(ValidationError, match="Invalid version number"):
            await ReleaseCommands(release_config).init("1.2")
        assert read_tree(firmware_tree) == before

    @pytest.mark.parametrize("version", ["1.2.3", "1.2.2", "1.2.3-rc.1"])
    @pytest.mark.asyncio
    async def test_version_must_increase(self, firmware_repo, firmware_tree, release_config, version):
        branches = branch_names(firmware_repo)
        with pytest.raises(ValidationError, match="should be larger"):
            await ReleaseCommands(release_config).init(version)
        assert branch_names(firmware_repo) == branches

    @pytest.mark.asyncio
    async def test_existing_branch(self, firmware_repo, firmware_tree, release_config):
        firmware_repo.create_head("release/v1.2.4")
        before = read_tree(firmware_tree)
        with pytest.raises(ConflictError):
            await ReleaseCommands(release_config).init("1.2.4")
        assert read_tree(firmware_tree) == before

    @pytest.mark.asyncio
    async def test_detached_head(self, firmware_repo, firmware_tree, release_config):
        firmware_repo.git.checkout(firmware_repo.head.commit.hexsha)
        with pytest.raises(ConflictError, match="detached"):
            await ReleaseCommands(release_config).init("1.2.4")
        assert firmware_repo.head.is_detached

    @pytest.mark.asyncio
    async def test_requires_firmware_remote(self, firmware_repo, firmware_tree, release_config):
        firmware_repo.delete_remote(firmware_repo.remote("origin"))
        with pytest.raises(ValidationError, match="Not a firmware repository"):
            await ReleaseCommands(release_config).init("1.2.4")

    @pytest.mark.asyncio
    async def test_remote_check_can_be_disabled(self, firmware_repo, firmware_tree, release_config):
        firmware_repo.delete_remote(firmware_repo.remote("origin"))
        release_config.repository.require_firmware_remote = False
        await ReleaseCommands(release_config).init("1.3.0")
        assert firmware_repo.active_branch.name == "release/v1.3.0"


class TestShowVersion:

    @pytest.mark.asyncio
    async def test_show_version(self, firmware_repo, release_config):
        assert await ReleaseCommands(release_config).show_version() == "1.2.3"


class TestChangelog:

    @pytest.mark.asyncio
    async def test_changelog_uses_token_and_writes_file(self, firmware_repo, firmware_tree,
                                                        release_config, monkeypatch):
        firmware_repo.create_tag("v1.2.2")
        seen_tokens = []

        def handler(request):
            if "/labels/" in request.url.path:
                return httpx.Response(200, json={})
            return httpx.Response(404, json={})

        def client_factory(owner, repo, token=None, base_url=None, timeout=None):
            seen_tokens.append(token)
            return GitHubClient(owner, repo, token=token, base_url="https://api.github.test",
                                transport=httpx.MockTransport(handler))

        monkeypatch.setattr(commands_module, "GitHubClient", client_factory)

        data = await ReleaseCommands(release_config).changelog(token="abc")

        # No pull requests were merged since v1.2.2
        assert data is None
        assert seen_tokens == ["abc"]
        assert (firmware_tree / "CHANGELOG.md").read_text() == CHANGELOG_MD
