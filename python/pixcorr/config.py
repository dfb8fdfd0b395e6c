"""Matcher configuration."""

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from .stats import SPREAD_MODES

METRICS = ("reference", "ncc")


@dataclass(frozen=True)
class MatchConfig:
    """Settings for :class:`pixcorr.Matcher`.

    The defaults reproduce the scoring of the original plugin: the literal
    ``reference`` accumulation, the asymmetric ``reference`` spread and a best
    score threshold of ``0.0``. :meth:`corrected` switches both formulas to
    their textbook forms.

    Attributes:
        metric: ``"reference"`` sums ``((w - w_mean) * p - p_mean) / (w_spread * p_spread)``
            over the window; ``"ncc"`` is the normalized cross-correlation
            ``sum((w - w_mean) * (p - p_mean)) / (w_spread * p_spread * n)``.
        spread: spread rule, see :mod:`pixcorr.stats`.
        min_score: a window must score strictly above this to be reported.
        min_spread: windows (or patterns) whose spread is at or below this
            value are degenerate and never scored.
        inclusive_bounds: also evaluate the last legal row and column of
            offsets. Off by default, matching the original loop bounds.
        parallel: score blocks of offsets on a thread pool.
        workers: pool size when ``parallel`` is set; ``None`` lets
            :class:`concurrent.futures.ThreadPoolExecutor` decide.
        band_rows, band_cols: offset rows and columns scored per block; ``None``
            picks sizes that keep the temporary window arrays to a few megabytes.
    """

    metric: str = "reference"
    spread: str = "reference"
    min_score: float = 0.0
    min_spread: float = 0.0
    inclusive_bounds: bool = False
    parallel: bool = False
    workers: Optional[int] = None
    band_rows: Optional[int] = None
    band_cols: Optional[int] = None

    def __post_init__(self):
        if self.metric not in METRICS:
            raise ValueError(f"unknown metric '{self.metric}', expected one of {METRICS}")
        if self.spread not in SPREAD_MODES:
            raise ValueError(
                f"unknown spread mode '{self.spread}', expected one of {SPREAD_MODES}"
            )
        if math.isnan(self.min_score):
            raise ValueError("min_score must not be NaN")
        if not self.min_spread >= 0.0:
            raise ValueError(f"min_spread must be >= 0, got {self.min_spread}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.band_rows is not None and self.band_rows < 1:
            raise ValueError(f"band_rows must be >= 1, got {self.band_rows}")
        if self.band_cols is not None and self.band_cols < 1:
            raise ValueError(f"band_cols must be >= 1, got {self.band_cols}")

    @classmethod
    def corrected(cls, **overrides) -> "MatchConfig":
        """Normalized cross-correlation over sample standard deviations."""
        return cls(metric="ncc", spread="stdev", **overrides)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "MatchConfig":
        """Build a config from a mapping such as the ``match`` block of a case file."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"unknown match config keys: {', '.join(unknown)}")
        return cls(**dict(values))

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def with_overrides(self, **overrides) -> "MatchConfig":
        return replace(self, **overrides)


DEFAULT_CONFIG = MatchConfig()
