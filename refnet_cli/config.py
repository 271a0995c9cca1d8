"""Configuration paths and defaults for the referral network builder."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("REFNET_HOME", str(Path.home() / ".refnet"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

DEFAULT_VIRTUAL_LABEL = "Code {code}"
DEFAULT_RECORD_LABEL = "Record {id}"
DEFAULT_ORDER = "id"
ORDERS = ("id", "ranking")

# Numeric referral codes are zero-padded to this width ("7" -> "07").
NUMERIC_CODE_WIDTH = 2
