"""Brute-force template matching over every window of a source raster."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from . import stats
from .config import DEFAULT_CONFIG, MatchConfig
from .errors import EmptyRaster, InvalidDimensions
from .raster import Raster, RasterLike, as_raster

logger = logging.getLogger(__name__)

# Upper bound on temporary window samples materialized per scored block.
BAND_ELEMENTS = 1 << 20


@dataclass(frozen=True)
class Match:
    """Result of a single :meth:`Matcher.match` call.

    ``x``, ``y`` and ``window`` are ``None`` when no window scored above the
    threshold; ``score`` then holds the threshold itself.
    """

    found: bool
    x: Optional[int]
    y: Optional[int]
    score: float
    window: Optional[Raster] = None
    evaluated: int = 0

    @property
    def location(self) -> Optional[Tuple[int, int]]:
        if not self.found:
            return None
        return self.x, self.y


class Matcher:
    """Slides a pattern over every valid offset of a source and keeps the best score.

    A matcher holds only its configuration, so one instance can be shared
    between threads and reused for any number of calls.
    """

    def __init__(self, config: Optional[MatchConfig] = None, **overrides):
        cfg = config if config is not None else DEFAULT_CONFIG
        if overrides:
            cfg = cfg.with_overrides(**overrides)
        self.config = cfg

    def __repr__(self):
        return f"Matcher({self.config!r})"

    def match(self, source: RasterLike, pattern: RasterLike) -> Match:
        src, pat = self._check_inputs(source, pattern)
        scores = self._score_map(src, pat)
        return self._select(src, pat, scores)

    def score_map(self, source: RasterLike, pattern: RasterLike) -> np.ndarray:
        """Scores of every evaluated offset as a ``(rows, cols)`` float array.

        Entry ``[y, x]`` is the score of the window anchored at ``(x, y)``.
        Degenerate windows (spread at or below ``min_spread``, or a non-finite
        score) hold NaN.
        """
        src, pat = self._check_inputs(source, pattern)
        return self._score_map(src, pat)

    def offset_grid(self, source: RasterLike, pattern: RasterLike) -> Tuple[int, int]:
        """``(cols, rows)`` of offsets that :meth:`match` evaluates."""
        src, pat = self._check_inputs(source, pattern)
        rows, cols = self._grid(src, pat)
        return cols, rows

    def _check_inputs(self, source: RasterLike, pattern: RasterLike) -> Tuple[Raster, Raster]:
        src = as_raster(source)
        pat = as_raster(pattern)
        if src.is_empty():
            raise EmptyRaster("source", src.shape)
        if pat.is_empty():
            raise EmptyRaster("pattern", pat.shape)
        if pat.width > src.width or pat.height > src.height:
            raise InvalidDimensions(src.shape, pat.shape)
        return src, pat

    def _grid(self, src: Raster, pat: Raster) -> Tuple[int, int]:
        # The original loops stop one short of the last legal offset.
        extra = 1 if self.config.inclusive_bounds else 0
        return src.height - pat.height + extra, src.width - pat.width + extra

    def _tiles(self, rows: int, cols: int, pat: Raster) -> List[Tuple[int, int, int, int]]:
        """Split the offset grid into ``(row0, row1, col0, col1)`` blocks.

        A block of ``r`` by ``c`` offsets materializes ``r * c * pat.size``
        window samples per temporary, kept within ``BAND_ELEMENTS`` unless a
        single window is already larger.
        """
        cfg = self.config
        per_offset = max(1, pat.size)
        if cfg.band_cols is not None:
            col_step = cfg.band_cols
        else:
            col_step = max(1, min(cols, BAND_ELEMENTS // per_offset))
        if cfg.band_rows is not None:
            row_step = cfg.band_rows
        else:
            row_step = max(1, BAND_ELEMENTS // (col_step * per_offset))
            if cfg.parallel:
                workers = cfg.workers or 4
                row_step = min(row_step, max(1, math.ceil(rows / workers)))
        return [
            (r0, min(r0 + row_step, rows), c0, min(c0 + col_step, cols))
            for r0 in range(0, rows, row_step)
            for c0 in range(0, cols, col_step)
        ]

    def _score_map(self, src: Raster, pat: Raster) -> np.ndarray:
        cfg = self.config
        rows, cols = self._grid(src, pat)
        scores = np.full((max(rows, 0), max(cols, 0)), np.nan, dtype=np.float64)
        if rows <= 0 or cols <= 0:
            return scores

        pattern = pat.data.astype(np.float64)
        pattern_mean = stats.mean(pat)
        pattern_spread = stats.spread(pattern_mean, pat, cfg.spread)
        if pattern_spread <= cfg.min_spread:
            logger.debug(
                "pattern spread %.6g is degenerate, no window can be scored", pattern_spread
            )
            return scores

        tiles = self._tiles(rows, cols, pat)
        args = (src.data, pattern, pattern_mean, pattern_spread)
        if cfg.parallel and len(tiles) > 1:
            with ThreadPoolExecutor(max_workers=cfg.workers) as pool:
                futures = [pool.submit(self._score_tile, *args, *tile) for tile in tiles]
                for (r0, r1, c0, c1), future in zip(tiles, futures):
                    scores[r0:r1, c0:c1] = future.result()
        else:
            for r0, r1, c0, c1 in tiles:
                scores[r0:r1, c0:c1] = self._score_tile(*args, r0, r1, c0, c1)
        return scores

    def _score_tile(
        self,
        source: np.ndarray,
        pattern: np.ndarray,
        pattern_mean: float,
        pattern_spread: float,
        r0: int,
        r1: int,
        c0: int,
        c1: int,
    ) -> np.ndarray:
        cfg = self.config
        ph, pw = pattern.shape
        block = source[r0 : r1 + ph - 1, c0 : c1 + pw - 1]
        windows, means, spreads = stats.sliding_stats(block, (ph, pw), cfg.spread)
        centered = windows - means[:, :, None, None]

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            if cfg.metric == "reference":
                # Each term is scaled on its own before summation.
                scale = 1.0 / (spreads * pattern_spread)
                terms = (centered * pattern - pattern_mean) * scale[:, :, None, None]
                tile = terms.sum(axis=(2, 3))
            else:
                num = (centered * (pattern - pattern_mean)).sum(axis=(2, 3))
                tile = num / (spreads * pattern_spread * pattern.size)

        tile[spreads <= cfg.min_spread] = np.nan
        tile[~np.isfinite(tile)] = np.nan
        return tile

    def _select(self, src: Raster, pat: Raster, scores: np.ndarray) -> Match:
        threshold = self.config.min_score
        evaluated = scores.size
        valid = np.isfinite(scores) & (scores > threshold)
        if not valid.any():
            logger.debug(
                "no window of %dx%d source beat %.6g for %dx%d pattern (%d evaluated)",
                src.width, src.height, threshold, pat.width, pat.height, evaluated,
            )
            return Match(found=False, x=None, y=None, score=threshold, evaluated=evaluated)

        # argmax returns the first maximum, i.e. the earliest offset in row-major order.
        idx = int(np.argmax(np.where(valid, scores, -np.inf)))
        y, x = divmod(idx, scores.shape[1])
        score = float(scores[y, x])
        logger.debug(
            "best match at (%d, %d) score %.6g; %d evaluated, %d degenerate",
            x, y, score, evaluated, int(np.isnan(scores).sum()),
        )
        return Match(
            found=True,
            x=x,
            y=y,
            score=score,
            window=src.crop(x, y, pat.width, pat.height),
            evaluated=evaluated,
        )


def match_template(
    image: RasterLike,
    template: RasterLike,
    config: Optional[MatchConfig] = None,
    **overrides,
) -> Match:
    """One-shot convenience wrapper around :meth:`Matcher.match`."""
    return Matcher(config, **overrides).match(image, template)
