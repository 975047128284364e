"""
Test Configuration Loading

YAML loading, environment interpolation and the context built from it.
"""

import logging

import pytest

from config import SyncConfig, create_default_config, load_config, load_config_from_file
from config.loader import interpolate_env_vars
from contentsync.bootstrap import build_context, build_matrix
from contentsync.core.capability_matrix import Action
from contentsync.core.roles import Role
from contentsync.core.session import LocalSessionProvider
from contentsync.data.repos.base import InMemoryCollection


class TestInterpolation:

    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("CONTENTSYNC_TEST_URL", "https://abc.supabase.co")
        assert interpolate_env_vars("${CONTENTSYNC_TEST_URL}") == "https://abc.supabase.co"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("CONTENTSYNC_TEST_LEVEL", raising=False)
        assert interpolate_env_vars({"level": "${CONTENTSYNC_TEST_LEVEL:-DEBUG}"}) == {"level": "DEBUG"}

    def test_required_missing_raises(self, monkeypatch):
        monkeypatch.delenv("CONTENTSYNC_TEST_MISSING", raising=False)
        with pytest.raises(KeyError):
            interpolate_env_vars(["${CONTENTSYNC_TEST_MISSING}"])

    def test_missing_variable_names_the_setting(self, monkeypatch):
        monkeypatch.delenv("CONTENTSYNC_TEST_MISSING", raising=False)

        with pytest.raises(KeyError) as exc_info:
            interpolate_env_vars({"supabase": {"key": "${CONTENTSYNC_TEST_MISSING}"}})

        assert "supabase.key" in str(exc_info.value)
        assert "CONTENTSYNC_TEST_MISSING" in str(exc_info.value)

    def test_non_strings_untouched(self):
        assert interpolate_env_vars({"n": 3, "flag": True}) == {"n": 3, "flag": True}


class TestLoading:

    def test_load_from_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        monkeypatch.setenv("SUPABASE_KEY", "anon-key")
        path = tmp_path / "contentsync.yaml"
        path.write_text(
            """
supabase:
  url: "${SUPABASE_URL}"
  key: "${SUPABASE_KEY}"
profiles:
  role_column: access_level
ordering:
  primary: created_at
  fallback: id
logging:
  level: debug
capabilities:
  faq:
    chef_projet: {create: true}
"""
        )

        config = load_config_from_file(path)

        assert config.supabase.is_configured
        assert config.profiles.role_column == "access_level"
        assert config.profiles.table == "user_profiles"
        assert config.ordering.primary == "created_at"
        assert config.logging.level == "DEBUG"
        assert config.capabilities["faq"]["chef_projet"] == {"create": True}
        assert config.working_dir == tmp_path.absolute()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_from_file(tmp_path / "nope.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "contentsync.yaml"
        path.write_text("")

        config = load_config_from_file(path)

        assert config.profiles.default_role == "membre"
        assert not config.supabase.is_configured

    def test_unknown_section_warns(self, tmp_path, caplog):
        path = tmp_path / "contentsync.yaml"
        path.write_text("agent:\n  name: leftover\nprofiles:\n  table: members\n")

        with caplog.at_level(logging.WARNING):
            config = load_config_from_file(path)

        assert config.profiles.table == "members"
        assert "agent" in caplog.text

    def test_non_mapping_file_rejected(self, tmp_path):
        path = tmp_path / "contentsync.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError):
            load_config_from_file(path)

    def test_defaults_read_env(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        monkeypatch.delenv("SUPABASE_KEY", raising=False)

        config = load_config()

        assert config.supabase.url == "https://abc.supabase.co"
        assert not config.supabase.is_configured

    def test_found_in_config_subdirectory(self, tmp_path, monkeypatch):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "contentsync.yaml").write_text("profiles:\n  table: members\n")

        config = load_config(working_dir=tmp_path)

        assert config.profiles.table == "members"

    def test_default_config_file_round_trip(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        monkeypatch.setenv("SUPABASE_KEY", "anon-key")
        monkeypatch.delenv("CONTENTSYNC_LOG_LEVEL", raising=False)

        path = create_default_config(tmp_path / "contentsync.yaml")
        config = load_config_from_file(path)

        assert config.supabase.key == "anon-key"
        assert config.logging.level == "INFO"
        assert config.capabilities == {}

    def test_to_dict(self):
        data = SyncConfig().to_dict()
        assert data["ordering"] == {"primary": "id", "fallback": "created_at"}
        assert data["profiles"]["default_role"] == "membre"


class TestBootstrap:

    def test_capability_overrides_applied(self):
        config = SyncConfig.from_dict({"capabilities": {"faq": {"chef_projet": {"create": True}}}})
        matrix = build_matrix(config)
        assert matrix.permit(Role.PROJECT_LEAD, "faq", Action.CREATE)

    def test_in_memory_context(self):
        context = build_context(SyncConfig())

        assert isinstance(context.provider, LocalSessionProvider)
        assert isinstance(context.registry.collection("news"), InMemoryCollection)
        assert context.profiles.collection is context.registry.collection("users")

    def test_unknown_default_role_falls_back(self, caplog):
        config = SyncConfig.from_dict({"profiles": {"default_role": "overlord"}})

        with caplog.at_level(logging.WARNING):
            context = build_context(config)

        assert context.resolver.default_role == Role.MEMBER
        assert "overlord" in caplog.text

    @pytest.mark.asyncio
    async def test_context_end_to_end(self):
        context = build_context(SyncConfig())
        await context.resolver.start()

        session = await context.provider.sign_up("admin@example.org", "pw", Role.ADMIN)
        await context.resolver.settle()
        assert context.resolver.role == Role.MEMBER

        users = context.registry.store_for("users")
        await users.create({"id": session.actor_id, "role": "admin", "full_name": "Admin"})
        await context.resolver.refresh()

        assert context.resolver.role == Role.ADMIN
        assert context.resolver.display_name == "Admin"
        assert context.resolver.can_delete("team")
