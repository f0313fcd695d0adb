"""Environment-driven runtime flags."""

from __future__ import annotations

import os
from typing import Final

import jax

ENABLE_X64: Final[bool] = os.environ.get("VCALC_DISABLE_X64", "0") != "1"
USE_JITTED_KERNELS: Final[bool] = os.environ.get("VCALC_DISABLE_JITTED_KERNELS", "0") != "1"

# Values round-trip through text, so components are kept in double precision
# unless explicitly disabled.
if ENABLE_X64:
    jax.config.update("jax_enable_x64", True)
