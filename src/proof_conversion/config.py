"""
Conversion settings
"""

import os
from pathlib import Path
from typing import Optional

from .types import Layout

# Fixed layout capacities: pi1..pi5 and ic0..ic5
FIXED_PUBLIC_INPUTS = 5
FIXED_COMMITMENT_POINTS = FIXED_PUBLIC_INPUTS + 1

DEFAULT_LAYOUTS = {
    "snarkjs": Layout.FIXED,
    "gnark": Layout.KEYED,
}

VK_ENV_VAR = "PROOF_CONVERSION_VK"
VK_BLOB_NAME = "groth16_vk.bin"


def packaged_vk_path() -> Path:
    return Path(__file__).parent / "data" / VK_BLOB_NAME


def resolve_vk_path(explicit: Optional[str] = None) -> Path:
    """Pick the gnark verification key blob: explicit path, environment, packaged copy"""
    if explicit:
        return Path(explicit)
    from_env = os.environ.get(VK_ENV_VAR)
    if from_env:
        return Path(from_env)
    return packaged_vk_path()


def default_layout(source: str) -> Layout:
    return DEFAULT_LAYOUTS[source]
