"""Pytest fixtures for pixcorr testing."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import numpy as np
import pytest

# Generated by tools/synth_cases/generate_cases.py (relative to repo root)
SYNTHETIC_CASES_DIR = Path(__file__).parent.parent.parent / "synthetic_cases"


@dataclass
class Instance:
    """Ground truth for an embedded template."""
    x: int
    y: int
    gain: float
    bias: float


@dataclass
class SyntheticCase:
    """A synthetic test case with ground truth."""
    case_id: str
    family: str
    image_path: Path
    template_path: Path
    match_config: Dict[str, object]
    instances: List[Instance]
    expected_present: bool
    image_size: tuple[int, int]
    template_size: tuple[int, int]


def load_case(case_dir: Path) -> SyntheticCase:
    """Load a synthetic test case from a directory."""
    with open(case_dir / "meta.json") as f:
        meta = json.load(f)
    with open(case_dir / "cli_config.json") as f:
        cli_config = json.load(f)

    instances = [
        Instance(
            x=inst["x"],
            y=inst["y"],
            gain=inst.get("gain", 1.0),
            bias=inst.get("bias", 0.0),
        )
        for inst in meta.get("instances", [])
    ]

    return SyntheticCase(
        case_id=meta["case_id"],
        family=meta["family"],
        image_path=case_dir / cli_config.get("image_path", "image.png"),
        template_path=case_dir / cli_config.get("template_path", "template.png"),
        match_config=cli_config.get("match", {}),
        instances=instances,
        expected_present=meta.get("present", True),
        image_size=(meta["image"]["width"], meta["image"]["height"]),
        template_size=(meta["template"]["width"], meta["template"]["height"]),
    )


def discover_cases() -> List[SyntheticCase]:
    """Discover all synthetic test cases."""
    if not SYNTHETIC_CASES_DIR.exists():
        return []

    manifest_path = SYNTHETIC_CASES_DIR / "manifest.json"
    if manifest_path.exists():
        with open(manifest_path) as f:
            case_dirs = [SYNTHETIC_CASES_DIR / case_id for case_id in json.load(f).get("cases", [])]
    else:
        case_dirs = sorted(p for p in SYNTHETIC_CASES_DIR.iterdir() if (p / "meta.json").exists())

    return [load_case(case_dir) for case_dir in case_dirs if case_dir.is_dir()]


@pytest.fixture(params=discover_cases(), ids=lambda c: c.case_id)
def synthetic_case(request) -> SyntheticCase:
    """Parametrized fixture for each synthetic test case."""
    return request.param


def load_image(path: Path) -> np.ndarray:
    """Load a grayscale image as numpy array."""
    Image = pytest.importorskip("PIL.Image")

    img = Image.open(path)
    if img.mode != "L":
        img = img.convert("L")
    return np.array(img, dtype=np.uint8)


def reference_score(source: np.ndarray, pattern: np.ndarray, x: int, y: int) -> float:
    """Score of one window, accumulated term by term like the original plugin."""
    ph, pw = pattern.shape
    window = source[y : y + ph, x : x + pw].astype(float)
    n = window.size

    def mean(data):
        return sum(float(v) for v in data.ravel()) / n

    def spread(m, data):
        if n == 1:
            return 0.0
        total = 0.0
        for v in data.ravel():
            d = m - float(v)
            if d > 0:
                total += d ** 0.5
        return (total / (n - 1)) ** 0.5

    p_mean = mean(pattern)
    p_spread = spread(p_mean, pattern)
    w_mean = mean(window)
    w_spread = spread(w_mean, window)
    corr = 0.0
    for yy in range(ph):
        for xx in range(pw):
            corr += ((window[yy, xx] - w_mean) * float(pattern[yy, xx]) - p_mean) * (
                1 / (w_spread * p_spread)
            )
    return corr


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240611)


# Tolerance settings for validation
POSITION_TOLERANCE_PX = 1  # pixels
MIN_SCORE_THRESHOLD = 0.8  # ncc score
