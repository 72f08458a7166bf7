import pytest

from launcher.config import (
    LaunchConfig,
    REQUIRED_PATH_VARS,
    endpoint_for_site,
    get_float_from_env,
    validate,
    validate_all,
)
from launcher.types import MissingPathError


def test_endpoint_is_derived_from_site():
    assert endpoint_for_site("brno") == "unix:@qxeventd-remote-kitty-control-brno"
    assert endpoint_for_site("brno") == endpoint_for_site("brno")


def test_endpoint_with_unset_site():
    cfg = LaunchConfig.from_env({"HOME": "/home/u"})
    assert cfg.site == ""
    assert cfg.endpoint == "unix:@qxeventd-remote-kitty-control-"


def test_defaults_follow_home():
    cfg = LaunchConfig.from_env({"HOME": "/home/u"})
    assert cfg.shvbroker_bin == "/home/u/p/shvbroker-rs/target/debug/shvbroker"
    assert cfg.qxeventd_bin == "/home/u/p/qxeventd/target/debug/qxeventd"
    assert cfg.qxeventd_dir == "/home/u/t/qxeventd"
    assert cfg.shvbroker_config == ""
    assert cfg.kitty_bin == "kitty"
    assert cfg.qxeventd_url == "tcp://localhost?user=test&password=test"
    assert cfg.qxeventd_mount == "test/qxevent"
    assert cfg.qxeventd_verbose == "RpcMsg"


def test_from_env_reads_variables(launch_paths):
    cfg = LaunchConfig.from_env({**launch_paths, "KITTY_BIN": "/opt/kitty/bin/kitty"})
    assert cfg.shvbroker_bin == launch_paths["SHVBROKER_BIN"]
    assert cfg.qxeventd_dir == launch_paths["QXEVENTD_DIR"]
    assert cfg.kitty_bin == "/opt/kitty/bin/kitty"
    assert cfg.endpoint.endswith("-lab")


def test_validate_all_passes_for_existing_paths(launch_config):
    validate_all(launch_config)


@pytest.mark.parametrize("var_name", REQUIRED_PATH_VARS)
def test_validate_reports_missing_variable(launch_paths, tmp_path, var_name):
    env = {**launch_paths, var_name: str(tmp_path / "nope")}
    cfg = LaunchConfig.from_env(env)
    with pytest.raises(MissingPathError) as excinfo:
        validate_all(cfg)
    assert excinfo.value.var_name == var_name
    assert var_name in str(excinfo.value)
    assert str(tmp_path / "nope") in str(excinfo.value)


def test_unset_broker_config_is_missing(launch_paths):
    env = dict(launch_paths)
    del env["SHVBROKER_CONFIG"]
    with pytest.raises(MissingPathError, match="SHVBROKER_CONFIG"):
        validate(LaunchConfig.from_env(env), "SHVBROKER_CONFIG")


def test_validate_stops_at_first_missing(launch_paths, tmp_path):
    env = {
        **launch_paths,
        "QXEVENTD_BIN": str(tmp_path / "a"),
        "SHVBROKER_CONFIG": str(tmp_path / "b"),
    }
    with pytest.raises(MissingPathError) as excinfo:
        validate_all(LaunchConfig.from_env(env))
    assert excinfo.value.var_name == "QXEVENTD_BIN"


def test_qxeventd_dir_is_not_checked(launch_paths, tmp_path):
    cfg = LaunchConfig.from_env({**launch_paths, "QXEVENTD_DIR": str(tmp_path / "absent")})
    validate_all(cfg)


def test_path_for_rejects_unknown_names(launch_config):
    with pytest.raises(KeyError):
        launch_config.path_for("SITE")


def test_get_float_from_env():
    assert get_float_from_env("READY_TIMEOUT", 10.0, {}) == 10.0
    assert get_float_from_env("READY_TIMEOUT", 10.0, {"READY_TIMEOUT": "2.5"}) == 2.5
    with pytest.raises(ValueError, match="READY_TIMEOUT"):
        get_float_from_env("READY_TIMEOUT", 10.0, {"READY_TIMEOUT": "soon"})
    with pytest.raises(ValueError):
        get_float_from_env("READY_TIMEOUT", 10.0, {"READY_TIMEOUT": "0"})
