"""
travelboard.config — YAML Configuration Loader
===============================================

Reads ``config.yaml`` for **infrastructure-only** settings (display name,
object storage bucket, identity provider endpoint).  Secrets and the
database URL stay in the environment (``.env``).

Usage::

    from travelboard.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.app_name)          # "Travelboard"
    print(cfg.storage_bucket)    # "travel-images"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TravelBoardConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str

    # Object storage
    storage_bucket: str

    # Identity provider; when unset, profile attributes come from the token
    identity_profile_url: str | None = None
    identity_timeout_seconds: float = 10.0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def default_config_path() -> str:
    """Return the config path, honouring ``TRAVELBOARD_CONFIG``."""
    return os.getenv("TRAVELBOARD_CONFIG", DEFAULT_CONFIG_PATH)


def load_config(path: str | Path | None = None) -> TravelBoardConfig:
    """Read *path* and return a :class:`TravelBoardConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$TRAVELBOARD_CONFIG`` or ``config.yaml`` in the working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path if path is not None else default_config_path())
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    profile_url = raw.get("identity_profile_url")
    return TravelBoardConfig(
        app_name=raw["app_name"],
        storage_bucket=raw["storage_bucket"],
        identity_profile_url=str(profile_url).rstrip("/") if profile_url else None,
        identity_timeout_seconds=float(raw.get("identity_timeout_seconds", 10.0)),
    )
