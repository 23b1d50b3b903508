"""
Random number generation utilities.

Every stage draws from a single numpy Generator created here, so one seed
reproduces a whole generation run. The global numpy and stdlib random states
are never touched.
"""

from typing import Optional

import numpy as np

from ..config import settings


def get_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Create the generator for a generation run.

    Args:
        seed: Integer seed. Falls back to ``settings.default_seed`` and then
            to fresh OS entropy.

    Returns:
        numpy Generator
    """
    if seed is None:
        seed = settings.default_seed
    return np.random.default_rng(seed)


def derive_seed(rng: np.random.Generator) -> int:
    """Draw a non-negative 31-bit integer seed for a dependent generator."""
    return int(rng.integers(0, 2**31 - 1))
