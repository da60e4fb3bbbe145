# batlab_analysis/core/validate.py
from __future__ import annotations
import logging
from typing import Iterable

from .model import TelemetrySample

# ----- defaults (used if configure_from_config isn't called) -----
_PCT_MIN: float = 0.0
_PCT_MAX: float = 100.0       # inclusive
_WATTS_MIN: float = 0.0
_WATTS_MAX: float = 100.0     # exclusive

_LOG = logging.getLogger(__name__)


def configure_from_config(cfg: dict) -> None:
    """
    Optional: call once at startup to override the plausibility bounds from
    the ``validation`` section of config.yaml.
    """
    global _PCT_MIN, _PCT_MAX, _WATTS_MIN, _WATTS_MAX

    # reset to defaults each call so repeated invocations do not accumulate
    _PCT_MIN, _PCT_MAX = 0.0, 100.0
    _WATTS_MIN, _WATTS_MAX = 0.0, 100.0

    val = (cfg or {}).get("validation", {}) if cfg else {}
    val = val or {}
    _PCT_MIN   = float(val.get("pct_min", _PCT_MIN))
    _PCT_MAX   = float(val.get("pct_max", _PCT_MAX))
    _WATTS_MIN = float(val.get("watts_min", _WATTS_MIN))
    _WATTS_MAX = float(val.get("watts_max", _WATTS_MAX))


def is_valid_sample(s: TelemetrySample) -> bool:
    # NaN compares False everywhere, so it never passes
    return (_PCT_MIN <= s.percentage <= _PCT_MAX
            and _WATTS_MIN <= s.watts < _WATTS_MAX)


def filter_valid(samples: Iterable[TelemetrySample]) -> list[TelemetrySample]:
    """Drop physically implausible samples, keeping the original order."""
    samples = list(samples)
    kept = [s for s in samples if is_valid_sample(s)]
    if len(kept) != len(samples):
        _LOG.debug("dropped %d of %d samples outside plausible range",
                   len(samples) - len(kept), len(samples))
    return kept
