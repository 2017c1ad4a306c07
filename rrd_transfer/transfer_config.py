#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Configuration lookup for rrd_transfer.

Defaults live in ``config_data/transfer_config.yaml`` inside the package. A user
file named by the ``RRD_TRANSFER_CONFIG`` environment variable (or passed to
:func:`set_config`) is layered on top of the defaults key by key.
"""
import os
import yaml

__all__ = ["config", "config_value", "set_config", "reset_config"]

config_dir = os.path.join(os.path.dirname(__file__), "config_data")
default_config_file = os.path.join(config_dir, "transfer_config.yaml")

_config = None
_user_config_file = None


def _load_yaml(fname):
    with open(fname, "r") as f:
        content = yaml.safe_load(f)
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Configuration file {fname} must contain a mapping")
    return content


def set_config(fname):
    """Use fname as the user configuration, overriding packaged defaults."""
    global _config, _user_config_file
    if fname is not None and not os.path.exists(fname):
        raise FileNotFoundError(f"Configuration file not found: {fname}")
    _user_config_file = fname
    _config = None


def reset_config():
    """Forget any user configuration and reload defaults on next access."""
    set_config(None)


def config():
    """Return the active configuration dictionary (loaded lazily)."""
    global _config
    if _config is None:
        cfg = _load_yaml(default_config_file)
        user_file = _user_config_file or os.environ.get("RRD_TRANSFER_CONFIG")
        if user_file:
            cfg.update(_load_yaml(user_file))
        _config = cfg
    return _config


def config_value(key):
    try:
        return config()[key]
    except KeyError:
        raise KeyError(f"Configuration key not found: {key}") from None
