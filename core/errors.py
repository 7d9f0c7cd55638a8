#!/usr/bin/env python3
# core/errors.py
# Fatal error taxonomy. Nothing here is retried: a failed run is restarted
# externally from the last good checkpoint.


class ConfigurationError(ValueError):
    """Decomposition, file layout or option mismatch detected before compute."""


class CheckpointLayoutError(ConfigurationError):
    """Restart file layout does not match the runtime decomposition."""


class CheckpointIOError(OSError):
    """Checkpoint or metrics file could not be read or written."""


class NumericalDivergenceError(RuntimeError):
    """NaN or non-admissible state (rho, p, T <= 0) detected."""

    def __init__(self, step, detail):
        self.step = step
        self.detail = detail
        super().__init__(f"NaN/inadmissible state at step {step}: {detail}")
