"""Unit tests for reconciliation configuration.

Tests for the ReconcileConfig model and its TOML I/O functions.
"""

from pathlib import Path

import pytest
from appxctl.core.config import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ReconcileConfig,
    config_to_dict,
    load_config,
    load_config_or_default,
    merge_overrides,
    save_config,
)
from appxctl.operators.winget import InstallTarget


class TestReconcileConfig:
    """Tests for the ReconcileConfig model."""

    def test_defaults(self) -> None:
        """Defaults match the documented values."""
        config = ReconcileConfig()

        assert config.package_name is None
        assert config.install is True
        assert config.winget_source == "msstore"
        assert config.install_by == "name"
        assert config.binary_name == "winget.exe"
        assert config.max_attempts == 10
        assert config.settle_delay_seconds == 30.0
        assert config.reset_log is False

    def test_unknown_field_rejected(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ValueError):
            ReconcileConfig(unknown=True)  # type: ignore[call-arg]

    @pytest.mark.parametrize("value", [0, 101])
    def test_max_attempts_bounds(self, value: int) -> None:
        """max_attempts must be between 1 and 100."""
        with pytest.raises(ValueError):
            ReconcileConfig(max_attempts=value)

    def test_negative_settle_delay_rejected(self) -> None:
        """settle_delay_seconds cannot be negative."""
        with pytest.raises(ValueError):
            ReconcileConfig(settle_delay_seconds=-1)

    def test_install_by_must_be_name_or_id(self) -> None:
        """install_by only accepts name or id."""
        with pytest.raises(ValueError):
            ReconcileConfig(install_by="moniker")  # type: ignore[arg-type]

    def test_powershell_timeout_zero_means_none(self) -> None:
        """A zero timeout disables the PowerShell timeout."""
        assert ReconcileConfig(powershell_timeout_seconds=0).powershell_timeout is None
        assert ReconcileConfig(powershell_timeout_seconds=90).powershell_timeout == 90.0


class TestInstallTarget:
    """Tests for building the install target from configuration."""

    def test_disabled_install_returns_none(self) -> None:
        """No target is built when install is disabled."""
        assert ReconcileConfig(install=False).install_target() is None

    def test_builds_target(self) -> None:
        """Configured winget fields flow into the target."""
        config = ReconcileConfig(
            winget_id="9WZDNCRFJ3PZ",
            winget_name="Company Portal",
            winget_source="msstore",
        )

        target = config.install_target()

        assert target == InstallTarget(
            package_id="9WZDNCRFJ3PZ",
            name="Company Portal",
            source="msstore",
            install_by="name",
        )

    def test_missing_id_raises(self) -> None:
        """winget_id is required for install."""
        with pytest.raises(ConfigError, match="winget_id"):
            ReconcileConfig(winget_name="Company Portal").install_target()

    def test_missing_name_raises_for_name_lookup(self) -> None:
        """winget_name is required when installing by name."""
        with pytest.raises(ConfigError, match="winget_name"):
            ReconcileConfig(winget_id="9WZDNCRFJ3PZ").install_target()

    def test_id_lookup_needs_no_name(self) -> None:
        """Installing by id works without a catalog name."""
        target = ReconcileConfig(winget_id="9WZDNCRFJ3PZ", install_by="id").install_target()

        assert target is not None
        assert target.install_by == "id"


class TestLoadConfig:
    """Tests for loading configuration files."""

    def test_load_valid_file(self, tmp_path: Path) -> None:
        """Valid TOML is parsed into a config."""
        path = tmp_path / "appxctl.toml"
        path.write_text(
            'package_name = "Microsoft.CompanyPortal"\n'
            'winget_id = "9WZDNCRFJ3PZ"\n'
            "max_attempts = 3\n"
        )

        config = load_config(path)

        assert config.package_name == "Microsoft.CompanyPortal"
        assert config.winget_id == "9WZDNCRFJ3PZ"
        assert config.max_attempts == 3

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """A missing file raises ConfigNotFoundError."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "appxctl.toml"
        path.write_text("package_name = \n")

        with pytest.raises(ConfigParseError, match="Invalid TOML"):
            load_config(path)

    def test_schema_violation_raises(self, tmp_path: Path) -> None:
        """Out-of-range values raise ConfigError."""
        path = tmp_path / "appxctl.toml"
        path.write_text("max_attempts = 0\n")

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)

    def test_default_path_used(self, isolated_home: Path) -> None:
        """Without a path the file under the config dir is read."""
        isolated_home.mkdir(parents=True)
        (isolated_home / "appxctl.toml").write_text('package_name = "Microsoft.BingNews"\n')

        assert load_config().package_name == "Microsoft.BingNews"

    def test_or_default_without_file(self, tmp_path: Path) -> None:
        """load_config_or_default falls back to defaults."""
        assert load_config_or_default(tmp_path / "missing.toml") == ReconcileConfig()

    def test_or_default_still_reports_parse_errors(self, tmp_path: Path) -> None:
        """Only a missing file falls back; broken files still raise."""
        path = tmp_path / "appxctl.toml"
        path.write_text("[[[\n")

        with pytest.raises(ConfigParseError):
            load_config_or_default(path)


class TestMergeOverrides:
    """Tests for merging command-line overrides."""

    def test_none_values_ignored(self) -> None:
        """Options that were not given keep the file value."""
        base = ReconcileConfig(package_name="Microsoft.CompanyPortal", max_attempts=4)

        merged = merge_overrides(base, {"package_name": None, "max_attempts": None})

        assert merged == base

    def test_values_override(self) -> None:
        """Given options replace the file value."""
        base = ReconcileConfig(package_name="Microsoft.CompanyPortal")

        merged = merge_overrides(base, {"package_name": "Microsoft.BingNews", "install": False})

        assert merged.package_name == "Microsoft.BingNews"
        assert merged.install is False
        assert base.package_name == "Microsoft.CompanyPortal"

    def test_invalid_override_raises(self) -> None:
        """Invalid option values raise ConfigError."""
        with pytest.raises(ConfigError, match="Invalid option"):
            merge_overrides(ReconcileConfig(), {"max_attempts": 0})


class TestSaveConfig:
    """Tests for writing configuration files."""

    def test_save_and_reload(self, tmp_path: Path) -> None:
        """A saved config loads back unchanged."""
        path = tmp_path / "nested" / "appxctl.toml"
        config = ReconcileConfig(
            package_name="Microsoft.CompanyPortal",
            winget_id="9WZDNCRFJ3PZ",
            winget_name="Company Portal",
            settle_delay_seconds=5,
        )

        saved = save_config(config, path)

        assert saved == path
        assert load_config(path) == config

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """The atomic write leaves no temporary files behind."""
        save_config(ReconcileConfig(), tmp_path / "appxctl.toml")

        assert [p.name for p in tmp_path.iterdir()] == ["appxctl.toml"]

    def test_unset_values_omitted(self) -> None:
        """None values are dropped from the TOML dictionary."""
        data = config_to_dict(ReconcileConfig())

        assert "package_name" not in data
        assert "winget_id" not in data
        assert data["windows_apps_root"] == str(ReconcileConfig().windows_apps_root)
