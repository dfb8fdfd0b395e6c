"""pixcorr - brute-force correlation template matching for grayscale rasters.

Every offset of the source is scored against the pattern with a
correlation-style statistic and the best-scoring window is reported. Two
scoring variants are available: the ``reference`` formulas of the original
ImageJ plugin (the default) and a corrected normalized cross-correlation.

Example usage:

    import numpy as np
    import pixcorr

    # Simple one-shot matching
    image = np.array(...)  # 2D array of samples
    template = np.array(...)  # 2D array, no larger than image
    result = pixcorr.match_template(image, template)
    if result.found:
        print(f"Found at ({result.x}, {result.y}) with score {result.score}")

    # Textbook normalized cross-correlation, scored on a thread pool:
    matcher = pixcorr.Matcher(pixcorr.MatchConfig.corrected(parallel=True))
    result = matcher.match(image, template)

    # Every score at once:
    scores = matcher.score_map(image, template)
"""

from .config import MatchConfig
from .errors import EmptyRaster, InvalidDimensions, MatchError
from .matcher import Match, Matcher, match_template
from .raster import Raster, as_raster
from .stats import WindowStats, mean, spread, window_stats

__version__ = "0.1.0"

__all__ = [
    "Match",
    "MatchConfig",
    "Matcher",
    "match_template",
    "Raster",
    "as_raster",
    "WindowStats",
    "mean",
    "spread",
    "window_stats",
    "MatchError",
    "InvalidDimensions",
    "EmptyRaster",
    "__version__",
]
