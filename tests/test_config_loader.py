import pytest

import errors
from services import config_loader


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[global]\n'
        'log_level = "debug"\n'
        '\n'
        '[auth]\n'
        'org_name = "from-file"\n'
        'mfa_methods = ["totp"]\n'
        'mfa_timeout = "45s"\n'
    )
    return str(path)


@pytest.fixture
def no_default_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config_loader, "CONFIG_DIR", str(tmp_path / "absent"))


def test_defaults_without_file(no_default_file):
    config = config_loader.load_config(environ={})

    assert config.source_file == ""
    assert config.section("auth")["mfa_timeout"] == "30s"
    assert config.section("global")["log_level"] == "info"


def test_file_values(config_file):
    config = config_loader.load_config(config_file, environ={})

    assert config.section("auth")["org_name"] == "from-file"
    assert config.section("auth")["mfa_methods"] == ["totp"]
    assert config.section("auth")["geoip_locale"] == "en"
    assert config.source_file == config_file
    assert config.config_dir == str(config_loader.os.path.dirname(config_file))


def test_config_file_from_environment(config_file):
    config = config_loader.load_config(environ={"OKTA_OPENVPN_AUTH_PLUGIN_CONFIG_FILE": config_file})
    assert config.section("auth")["org_name"] == "from-file"


def test_precedence_file_then_env_then_flags(config_file):
    environ = {
        "OKTA_OPENVPN_AUTH_PLUGIN_AUTH_ORG_NAME": "from-env",
        "OKTA_OPENVPN_AUTH_PLUGIN_AUTH_MFA_METHODS": "totp, push",
        "OKTA_OPENVPN_AUTH_PLUGIN_AUTH_MFA_TIMEOUT": "60s",
    }
    overrides = {"auth": {"mfa_timeout": "90s", "org_name": None}}

    config = config_loader.load_config(config_file, environ=environ, overrides=overrides)

    auth = config.section("auth")
    assert auth["org_name"] == "from-env"
    assert auth["mfa_methods"] == ["totp", "push"]
    assert auth["mfa_timeout"] == "90s"
    assert config.section("global")["log_level"] == "debug"


def test_env_booleans(no_default_file):
    config = config_loader.load_config(environ={
        "OKTA_OPENVPN_AUTH_PLUGIN_ENABLE_JSON_LOGGING": "true",
        "OKTA_OPENVPN_AUTH_PLUGIN_AUTH_INTERACTIVE": "0",
    })
    assert config.section("global")["enable_json_logging"] is True
    assert config.section("auth")["interactive"] is False


def test_env_invalid_boolean(no_default_file):
    with pytest.raises(errors.SettingInvalid):
        config_loader.load_config(environ={"OKTA_OPENVPN_AUTH_PLUGIN_ENABLE_JSON_LOGGING": "maybe"})


def test_missing_explicit_file(tmp_path):
    with pytest.raises(errors.ConfigLoadFailure) as excinfo:
        config_loader.load_config(str(tmp_path / "missing.toml"), environ={})
    assert excinfo.value.code == errors.CONFIG_LOAD_FAILURE_CODE


def test_invalid_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[auth\norg_name = ")
    with pytest.raises(errors.ConfigParseFailure) as excinfo:
        config_loader.load_config(str(path), environ={})
    assert excinfo.value.code == errors.CONFIG_PARSE_FAILURE_CODE


def test_section_must_be_table(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('auth = "example"\n')
    with pytest.raises(errors.ConfigParseFailure):
        config_loader.load_config(str(path), environ={})


def test_defaults_are_not_shared(no_default_file):
    first = config_loader.load_config(environ={})
    first.section("auth")["mfa_methods"].append("push")
    second = config_loader.load_config(environ={})
    assert second.section("auth")["mfa_methods"] == []
