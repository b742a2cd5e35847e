"""Unit tests for Config and related Pydantic models (siteprep.config).

Tests cover:
- PathConfig defaults, root-relative normalisation, resolved paths
- RequiredFolder / PermissionConfig octal mode coercion and bounds
- Default required folder set and file pairs
- VersionRequirement validation
- Config derived folder set, with_root, save/load, from_env
- Immutability
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from siteprep.config import (
    PLACEHOLDER_VERSIONS,
    SITE_FOLDER_CREATE_MODE,
    SITE_FOLDER_LOCKED_MODE,
    TEMPLATE_MODE,
    Config,
    PathConfig,
    PermissionConfig,
    RequiredFolder,
    ScaffoldFilePair,
    VersionRequirement,
    default_file_pairs,
    default_required_folders,
)
from siteprep.errors import ConfigError


# ---------------------------------------------------------------------------
# PathConfig
# ---------------------------------------------------------------------------


class TestPathConfig:
    @pytest.mark.unit
    def test_defaults(self):
        paths = PathConfig()
        assert paths.root == Path(".")
        assert paths.web_root == "web"
        assert paths.default_site_folder == "web/sites/default"
        assert paths.config_sync_folder == "files/config/sync"
        assert paths.public_files_folder == "web/files"
        assert paths.private_files_folder == "files/private"
        assert paths.log_files_folder == "log"

    @pytest.mark.unit
    def test_leading_slash_is_root_relative(self):
        paths = PathConfig(root=Path("/srv/site"), default_site_folder="/web/sites/default")
        assert paths.default_site_folder == "web/sites/default"
        assert paths.site_folder_path == Path("/srv/site/web/sites/default")

    @pytest.mark.unit
    def test_resolved_paths(self):
        paths = PathConfig(root=Path("/srv/site"))
        assert paths.web_root_path == Path("/srv/site/web")
        assert paths.config_sync_path == Path("/srv/site/files/config/sync")
        assert paths.public_files_path == Path("/srv/site/web/files")
        assert paths.private_files_path == Path("/srv/site/files/private")
        assert paths.log_files_path == Path("/srv/site/log")

    @pytest.mark.unit
    def test_empty_role_path_rejected(self):
        with pytest.raises(ValidationError):
            PathConfig(log_files_folder="/")

    @pytest.mark.unit
    def test_frozen(self):
        paths = PathConfig()
        with pytest.raises(ValidationError):
            paths.web_root = "docroot"


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


class TestModes:
    @pytest.mark.unit
    @pytest.mark.parametrize("value", [0o640, "0640", "640", "0o640", "0O640"])
    def test_octal_forms_accepted(self, value):
        assert RequiredFolder(path="log", mode=value).mode == 0o640

    @pytest.mark.unit
    def test_non_octal_string_rejected(self):
        with pytest.raises(ValidationError):
            RequiredFolder(path="log", mode="0989")

    @pytest.mark.unit
    def test_mode_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            RequiredFolder(path="log", mode=0o17777)

    @pytest.mark.unit
    def test_permission_defaults(self):
        perms = PermissionConfig()
        assert perms.site_folder_create_mode == SITE_FOLDER_CREATE_MODE == 0o666
        assert perms.template_mode == TEMPLATE_MODE == 0o640
        assert perms.site_folder_locked_mode == SITE_FOLDER_LOCKED_MODE == 0o440

    @pytest.mark.unit
    def test_permission_override_from_string(self):
        perms = PermissionConfig(site_folder_create_mode="0775")
        assert perms.site_folder_create_mode == 0o775


# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------


class TestDefaultTables:
    @pytest.mark.unit
    def test_required_folders_order_and_modes(self):
        folders = default_required_folders(PathConfig())
        assert [(f.path, f.mode) for f in folders] == [
            ("files/config/sync", 0o660),
            ("log", 0o660),
            ("web/files", 0o664),
            ("files/private", 0o660),
            ("web/libraries", 0o664),
            ("web/modules", 0o664),
            ("web/profiles", 0o664),
            ("web/themes", 0o664),
        ]

    @pytest.mark.unit
    def test_required_folders_follow_web_root(self):
        folders = default_required_folders(PathConfig(web_root="docroot"))
        assert "docroot/modules" in [f.path for f in folders]

    @pytest.mark.unit
    def test_default_file_pairs(self):
        assert default_file_pairs() == [
            ScaffoldFilePair(origin="default.settings.php", target="settings.php"),
            ScaffoldFilePair(origin="default.services.yml", target="services.yml"),
        ]

    @pytest.mark.unit
    def test_for_filename(self):
        pair = ScaffoldFilePair.for_filename("local.settings.php")
        assert pair.origin == "default.local.settings.php"
        assert pair.target == "local.settings.php"


# ---------------------------------------------------------------------------
# VersionRequirement
# ---------------------------------------------------------------------------


class TestVersionRequirement:
    @pytest.mark.unit
    def test_defaults(self):
        req = VersionRequirement()
        assert req.minimum == "1.0.0"
        assert req.placeholders == PLACEHOLDER_VERSIONS
        assert req.tool_name == "Composer"

    @pytest.mark.unit
    def test_invalid_minimum_rejected(self):
        with pytest.raises(ValidationError):
            VersionRequirement(minimum="not-a-version")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestConfig:
    @pytest.mark.unit
    def test_defaults(self):
        config = Config()
        assert config.sentinel_name == ".gitkeep"
        assert config.fail_on_scaffold_errors is False
        assert config.required_folders is None
        assert len(config.file_pairs) == 2

    @pytest.mark.unit
    def test_required_folder_set_defaults_to_paths(self):
        config = Config(paths=PathConfig(log_files_folder="var/log"))
        assert config.required_folder_set()[1].path == "var/log"

    @pytest.mark.unit
    def test_explicit_required_folders_win(self):
        config = Config(required_folders=[RequiredFolder(path="tmp", mode=0o770)])
        assert [f.path for f in config.required_folder_set()] == ["tmp"]

    @pytest.mark.unit
    def test_with_root_returns_copy(self):
        config = Config()
        moved = config.with_root("/srv/other")
        assert moved.paths.root == Path("/srv/other")
        assert config.paths.root == Path(".")

    @pytest.mark.unit
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        config = Config(
            required_folders=[RequiredFolder(path="log", mode=0o750)],
            fail_on_scaffold_errors=True,
        ).with_root(tmp_path)
        target = config.save(tmp_path / "nested" / "siteprep.json")
        assert target.exists()
        assert Config.load(target) == config

    @pytest.mark.unit
    def test_load_accepts_octal_strings(self, tmp_path: Path):
        path = tmp_path / "siteprep.json"
        path.write_text(
            json.dumps({"required_folders": [{"path": "/log", "mode": "0770"}]}),
            encoding="utf-8",
        )
        config = Config.load(path)
        assert config.required_folder_set()[0].mode == 0o770
        assert config.required_folder_set()[0].path == "log"

    @pytest.mark.unit
    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Cannot read"):
            Config.load(tmp_path / "absent.json")

    @pytest.mark.unit
    def test_load_invalid_file(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"sentinel_name": ""}), encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config file"):
            Config.load(path)


class TestConfigFromEnv:
    @pytest.mark.unit
    def test_defaults_without_env(self):
        with patch.dict("os.environ", {}, clear=True):
            config = Config.from_env()
        assert config == Config()

    @pytest.mark.unit
    def test_reads_variables(self):
        env = {
            "SITEPREP_ROOT": "/srv/site",
            "SITEPREP_MIN_VERSION": "2.2.0",
            "SITEPREP_SENTINEL": ".keep",
            "SITEPREP_STRICT": "yes",
        }
        with patch.dict("os.environ", env, clear=True):
            config = Config.from_env()
        assert config.paths.root == Path("/srv/site")
        assert config.version.minimum == "2.2.0"
        assert config.sentinel_name == ".keep"
        assert config.fail_on_scaffold_errors is True

    @pytest.mark.unit
    def test_strict_false_values(self):
        with patch.dict("os.environ", {"SITEPREP_STRICT": "0"}, clear=True):
            assert Config.from_env().fail_on_scaffold_errors is False

    @pytest.mark.unit
    def test_invalid_min_version(self):
        with patch.dict("os.environ", {"SITEPREP_MIN_VERSION": "banana"}, clear=True):
            with pytest.raises(ConfigError):
                Config.from_env()
