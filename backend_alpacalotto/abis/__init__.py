"""
Contract ABIs (JSON) for the AlpacaLotto and PacaLuck token contracts.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

ABI_DIR = Path(__file__).resolve().parent


def load_abi(name: str) -> list[dict[str, Any]]:
    """Load abis/<name>.json. Raises FileNotFoundError if missing."""
    path = ABI_DIR / f"{name}.json"
    if not path.is_file():
        raise FileNotFoundError(f"ABI not found: {path}")
    with open(path, encoding="utf-8") as f:
        return json.load(f)
