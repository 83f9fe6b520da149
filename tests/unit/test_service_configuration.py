"""
Unit tests for the ServiceConfiguration store.

Tests package and item bookkeeping, reading state, profile queries and
placeholder resolution, plus the load_configuration shortcut.
"""

import os
import pytest
from unittest.mock import patch

from filltheform.config.loader import SETTINGS_ENV_VAR, SettingsError
from filltheform.models.configuration import ConfigurationItem, ConfigurationSource
from filltheform.models.settings import ReaderSettings, SourceSettings
from filltheform.reader.errors import ErrorKind, IOFailureError
from filltheform.service.configuration import (
    ServiceConfiguration,
    ReadingState,
    load_configuration
)


@pytest.fixture
def configuration():
    """Configuration with two profiles and a profile-less item."""
    config = ServiceConfiguration()
    config.add_package("com.example.app")
    config.add_configuration_item(ConfigurationItem(key="first_name", profile="home", value="John"))
    config.add_configuration_item(ConfigurationItem(key="last_name", profile="home", value="Doe"))
    config.add_configuration_item(
        ConfigurationItem(key="greeting", profile="home", value="Hello &first_name; &last_name;")
    )
    config.add_configuration_item(ConfigurationItem(key="first_name", profile="work", value="J."))
    config.add_configuration_item(ConfigurationItem(key="company", value="ACME"))
    return config


class TestServiceConfiguration:
    """Test cases for ServiceConfiguration bookkeeping."""

    def test_initial_state(self):
        """Test a new configuration is empty."""
        config = ServiceConfiguration()

        assert config.state == ReadingState.NOT_STARTED
        assert config.packages == []
        assert config.items == []
        assert config.failure is None
        assert config.failure_reason is None

    def test_add_package(self):
        """Test packages are stripped, deduplicated and blanks skipped."""
        config = ServiceConfiguration()
        config.add_package("  com.a  ")
        config.add_package("com.a")
        config.add_package("   ")
        config.add_package("com.b")

        assert config.packages == ["com.a", "com.b"]
        assert config.is_package_supported("com.b")
        assert not config.is_package_supported("com.c")

    def test_reading_completed(self, configuration):
        """Test completion updates the state."""
        configuration.on_reading_completed()

        assert configuration.state == ReadingState.COMPLETED
        assert configuration.is_completed()

    def test_reading_failed(self, configuration):
        """Test failure keeps the typed error and previously read items."""
        error = IOFailureError("disk gone")
        configuration.on_reading_failed(error)

        assert configuration.state == ReadingState.FAILED
        assert configuration.failure is error
        assert configuration.failure.kind == ErrorKind.IO_FAILURE
        assert configuration.failure_reason == "disk gone"
        assert len(configuration.items) == 5
        assert not configuration.is_completed()

    def test_get_profiles(self, configuration):
        """Test profiles are listed once in document order."""
        assert configuration.get_profiles() == ["home", "work"]

    def test_get_items_for_profile(self, configuration):
        """Test items are filtered by profile."""
        assert [item.key for item in configuration.get_items_for_profile("home")] == [
            "first_name", "last_name", "greeting"
        ]
        assert [item.key for item in configuration.get_items_for_profile(None)] == ["company"]

    def test_find_item(self, configuration):
        """Test items are found by case-insensitive key within a profile."""
        assert configuration.find_item("FIRST_NAME", "work").value == "J."
        assert configuration.find_item("company").value == "ACME"
        assert configuration.find_item("company", "home") is None

    def test_reset(self, configuration):
        """Test reset clears everything."""
        configuration.on_reading_completed()
        configuration.reset()

        assert configuration.packages == []
        assert configuration.items == []
        assert configuration.state == ReadingState.NOT_STARTED

    def test_to_dict(self, configuration):
        """Test dictionary conversion."""
        data = configuration.to_dict()

        assert data['state'] == "not_started"
        assert data['packages'] == ["com.example.app"]
        assert data['items'][0] == {
            'key': "first_name", 'profile': "home", 'value': "John", 'label': None
        }

    def test_str(self, configuration):
        """Test the string summary."""
        assert str(configuration) == "State: not_started | Packages: 1 | Items: 5"


class TestResolveVariables:
    """Test cases for placeholder resolution."""

    def test_resolve_in_same_profile(self, configuration):
        """Test placeholders resolve against items of the same profile."""
        greeting = configuration.find_item("greeting", "home")

        assert configuration.get_resolved_value(greeting) == "Hello John Doe"

    def test_profile_takes_precedence(self, configuration):
        """Test the profile's own item wins over other profiles."""
        assert configuration.resolve_variables("&first_name;", "work") == "J."

    def test_fallback_to_profile_less_item(self, configuration):
        """Test profile-less items are used when the profile has none."""
        assert configuration.resolve_variables("at &company;", "home") == "at ACME"

    def test_unknown_placeholder_kept(self, configuration):
        """Test unknown placeholders are left untouched."""
        assert configuration.resolve_variables("&missing; &company;") == "&missing; ACME"

    def test_no_recursive_resolution(self):
        """Test inserted values are not resolved again."""
        config = ServiceConfiguration()
        config.add_configuration_item(ConfigurationItem(key="a", value="&b;"))
        config.add_configuration_item(ConfigurationItem(key="b", value="x"))

        assert config.resolve_variables("&a;") == "&b;"


class TestLoadConfiguration:
    """Test cases for the load_configuration shortcut."""

    def test_load_from_assets(self, tmp_path):
        """Test reading a full document into a ServiceConfiguration."""
        (tmp_path / "config.xml").write_text(
            """<?xml version="1.0" encoding="utf-8"?>
<filltheformconfig>
    <packages>
        <package>com.example.app</package>
        <package> com.example.other </package>
    </packages>
    <profiles>
        <profile name="login">
            <username label="User">john</username>
            <password label="Password">&username;_secret</password>
        </profile>
    </profiles>
    <country>DE</country>
</filltheformconfig>
""", encoding='utf-8')
        settings = ReaderSettings(sources=SourceSettings(assets_root=str(tmp_path)))

        config = load_configuration(ConfigurationSource.ASSETS, "config.xml", settings=settings)

        assert config.is_completed()
        assert config.packages == ["com.example.app", "com.example.other"]
        assert config.get_profiles() == ["login"]
        password = config.find_item("password", "login")
        assert password.value == "&username;_secret"
        assert config.get_resolved_value(password) == "john_secret"
        assert config.find_item("country").profile is None

    def test_load_failure(self, tmp_path):
        """Test failures are reported on the returned configuration."""
        settings = ReaderSettings(sources=SourceSettings(assets_root=str(tmp_path)))

        config = load_configuration("assets", "missing.xml", settings=settings)

        assert config.state == ReadingState.FAILED
        assert config.failure.kind == ErrorKind.IO_FAILURE
        assert config.items == []

    def test_settings_discovered_when_not_given(self, tmp_path):
        """Test the settings file found by discovery configures the read."""
        (tmp_path / "bundled").mkdir()
        (tmp_path / "bundled" / "config.xml").write_bytes(
            b"<formconfig><country>DE</country></formconfig>"
        )
        (tmp_path / ".filltheform.yaml").write_text(
            f"sources:\n  assets_root: {tmp_path / 'bundled'}\nparser:\n  root_tag: formconfig\n",
            encoding='utf-8'
        )

        with patch.dict(os.environ), \
             patch("pathlib.Path.cwd", return_value=tmp_path), \
             patch("pathlib.Path.home", return_value=tmp_path / "home"):
            os.environ.pop(SETTINGS_ENV_VAR, None)
            config = load_configuration(ConfigurationSource.ASSETS, "config.xml")

        assert config.is_completed()
        assert [item.key for item in config.items] == ["country"]

    def test_invalid_settings_file_raises(self, tmp_path):
        """Test a broken settings file is reported before reading."""
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text("sources:\n  request_timeout: -1\n", encoding='utf-8')

        with patch.dict(os.environ, {SETTINGS_ENV_VAR: str(settings_file)}):
            with pytest.raises(SettingsError, match="Settings validation failed"):
                load_configuration(ConfigurationSource.ASSETS, "config.xml")
