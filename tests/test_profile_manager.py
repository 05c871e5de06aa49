"""Tests for profile creation."""

import pytest
from agent_os_cli.profiles import ProfileError
from agent_os_cli.profiles import ProfileLoader
from agent_os_cli.profiles import ProfileManager


@pytest.fixture
def manager(base_dir):
    return ProfileManager(ProfileLoader(base_dir))


class TestValidateName:
    @pytest.mark.parametrize("name", ["rails", "Rails7", "my-profile", "my_profile"])
    def test_valid(self, manager, name):
        manager.validate_name(name)

    @pytest.mark.parametrize(
        ("name", "message"),
        [
            ("", "empty"),
            ("default", "reserved"),
            ("_mine", "reserved for internal use"),
            ("../escape", "path traversal"),
            ("a/b", "path traversal"),
            ("7up", "must start with a letter"),
            ("has space", "must start with a letter"),
        ],
    )
    def test_invalid(self, manager, name, message):
        with pytest.raises(ProfileError, match=message):
            manager.validate_name(name)


class TestCreateProfile:
    def test_inheriting_profile(self, base_dir, manager, make_profile):
        make_profile("default")

        created = manager.create_profile("rails", inherits_from="default")

        profile_dir = base_dir / "profiles" / "rails"
        assert profile_dir / "workflows" / "planning" in created
        assert (profile_dir / "standards").is_dir()
        assert (profile_dir / "workflows" / "implementation").is_dir()
        assert ProfileLoader(base_dir).load_profile("rails").inherits_from == "default"

    def test_standalone_profile(self, base_dir, manager):
        manager.create_profile("solo")
        assert ProfileLoader(base_dir).load_profile("solo").is_root

    def test_copy_does_not_inherit(self, base_dir, manager, make_profile):
        make_profile("rails", {"standards/a.md": "A"}, inherits_from="default")

        manager.create_profile("rails-copy", copy_from="rails")

        copy_dir = base_dir / "profiles" / "rails-copy"
        assert (copy_dir / "standards" / "a.md").read_text() == "A"
        config = ProfileLoader(base_dir).load_profile("rails-copy")
        assert config.is_root
        assert "Copied from: rails" in (copy_dir / "profile-config.yml").read_text()

    def test_dry_run(self, base_dir, manager):
        created = manager.create_profile("rails", dry_run=True)
        assert created[0] == base_dir / "profiles" / "rails"
        assert not created[0].exists()

    def test_existing_profile(self, manager, make_profile):
        make_profile("rails")
        with pytest.raises(ProfileError, match="already exists"):
            manager.create_profile("rails")

    def test_missing_parent(self, manager):
        with pytest.raises(ProfileError, match="does not exist"):
            manager.create_profile("rails", inherits_from="ghost")

    def test_inherit_and_copy_are_exclusive(self, manager, make_profile):
        make_profile("default")
        with pytest.raises(ProfileError, match="not both"):
            manager.create_profile("rails", inherits_from="default", copy_from="default")
