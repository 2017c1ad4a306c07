import pytest

from rrd_transfer.transfer_config import config_value, set_config


def test_defaults():
    assert config_value("magic") == "hcb_rrd_09082011A"
    assert config_value("max_buffers") == 4
    assert config_value("int_sentinel") == 0x7FFFFFFF


def test_env_override(tmp_path, monkeypatch):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("placeholder_uuid: unprovisioned\n")
    monkeypatch.setenv("RRD_TRANSFER_CONFIG", str(cfg))
    set_config(None)
    assert config_value("placeholder_uuid") == "unprovisioned"
    assert config_value("thermostat_prefix") == "thermstat"


def test_missing_key():
    with pytest.raises(KeyError):
        config_value("no_such_key")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        set_config(tmp_path / "absent.yaml")
