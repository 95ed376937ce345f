"""
POS Runtime Adapter
====================
Composition root: builds the selectors, the event bus and its
listeners from explicit settings. Nothing here is a singleton.
"""

from adapters.runtime.wiring import (
    PosRuntime,
    build_runtime,
    run_self_check,
)

__all__ = [
    "PosRuntime",
    "build_runtime",
    "run_self_check",
]
