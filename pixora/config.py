# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Load, merge and save Pixora configuration files (TOML)."""

from __future__ import annotations

import copy
import logging
import os
from importlib import resources
from pathlib import Path
import sys
from typing import Any

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib
import tomlkit

import pixora
from pixora.pixora_exceptions import InvalidInputError


log = logging.getLogger("config")

_cached_config: dict[str, dict[str, Any]] | None = None


def default_config() -> dict[str, dict[str, Any]]:
    """The configuration shipped with the package, as a fresh dict."""
    with (resources.files(pixora) / "defaults.toml").open("rb") as f:
        return tomllib.load(f)


def merge_config(
    base: dict[str, dict[str, Any]], override: dict[str, Any]
) -> dict[str, dict[str, Any]]:
    """Merge a user configuration over a base one, section by section.

    Args:
        base: a complete configuration, not modified.
        override: a possibly partial configuration.

    Returns:
        A new dict.

    Raises:
        InvalidInputError: unknown section or key, or a value of the wrong type.
    """
    merged = copy.deepcopy(base)
    for section, values in override.items():
        if section not in merged:
            raise InvalidInputError(f'Unknown configuration section "[{section}]"')
        if not isinstance(values, dict):
            raise InvalidInputError(f'Configuration "{section}" must be a table')
        for key, value in values.items():
            if key not in merged[section]:
                raise InvalidInputError(
                    f'Unknown configuration key "{key}" in section "[{section}]"'
                )
            expected = type(merged[section][key])
            if expected is float and isinstance(value, int):
                value = float(value)
            if not isinstance(value, expected):
                raise InvalidInputError(
                    f'Configuration "{section}.{key}" should be {expected.__name__}'
                    f" not {type(value).__name__}"
                )
            merged[section][key] = value
    return merged


def load_config(fname: str | Path | None = None) -> dict[str, dict[str, Any]]:
    """Load the defaults, then the user's file over them if there is one.

    Args:
        fname: a TOML file.  If omitted, look in the ``PIXORA_CONFIG``
            environment variable; if that is unset too, defaults only.

    Returns:
        The effective configuration as a dict of sections.
    """
    cfg = default_config()
    if fname is None:
        fname = os.environ.get("PIXORA_CONFIG")
    if not fname:
        return cfg
    fname = Path(fname)
    log.debug("Reading configuration from %s", fname)
    with open(fname, "rb") as f:
        try:
            user = tomllib.load(f)
        except tomllib.TOMLDecodeError as err:
            raise InvalidInputError(f'Cannot parse "{fname}": {err}') from err
    return merge_config(cfg, user)


def get_config() -> dict[str, dict[str, Any]]:
    """The effective configuration, loaded once per process."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def write_config(fname: str | Path, cfg: dict[str, dict[str, Any]] | None = None):
    """Write a configuration to a TOML file.

    Args:
        fname: where to write; overwritten if it exists.
        cfg: what to write, defaults to the effective configuration.
    """
    if cfg is None:
        cfg = get_config()
    doc = tomlkit.document()
    doc.add(tomlkit.comment("Pixora configuration"))
    for section, values in cfg.items():
        table = tomlkit.table()
        for k, v in values.items():
            table.add(k, v)
        doc.add(section, table)
    with open(fname, "w") as f:
        f.write(tomlkit.dumps(doc))
