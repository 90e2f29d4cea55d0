"""Tests for main module."""

from social_network.main import parse_args, settings_from_args, start_admin_api


def test_command_line_overrides_settings() -> None:
    args = parse_args(
        ["--port", "9100", "--max-connections", "2", "--download-access", "follow"]
    )

    settings = settings_from_args(args)

    assert settings.server_port == 9100
    assert settings.max_connections == 2
    assert settings.download_access == "follow"
    assert settings.admin_port is None


def test_admin_api_is_off_by_default(container) -> None:
    assert start_admin_api(container) is None
