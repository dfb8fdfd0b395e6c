#!/usr/bin/env python3
import argparse
import json
import random
import shutil
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

try:
    from PIL import Image
except ImportError:  # pragma: no cover - runtime guard
    print(
        "Pillow is required. Install it with:\n"
        "  pip install -r tools/synth_cases/requirements.txt",
        file=sys.stderr,
    )
    raise SystemExit(1)


DEFAULT_MATCH = {
    "metric": "ncc",
    "spread": "stdev",
    "min_score": 0.0,
    "min_spread": 0.0,
    "inclusive_bounds": False,
    "parallel": False,
}


@dataclass(frozen=True)
class CaseSpec:
    case_id: str
    family: str
    image_size: Tuple[int, int]
    template_size: Tuple[int, int]
    template_pattern: str
    background_style: str
    present: bool = True
    template_gain: float = 1.0
    template_bias: float = 0.0
    noise_sigma: float = 0.0
    place_mode: str = "random"
    background_value: Optional[int] = None
    match_overrides: Optional[Dict[str, object]] = None
    notes: str = ""


def clamp_u8(value: float) -> int:
    return max(0, min(255, int(value)))


def pattern_xor(width: int, height: int) -> List[int]:
    return [((x * 11) ^ (y * 5) ^ (x * y)) & 0xFF for y in range(height) for x in range(width)]


def pattern_checker(width: int, height: int, cell: int) -> List[int]:
    return [
        48 if ((x // cell) + (y // cell)) % 2 == 0 else 208
        for y in range(height)
        for x in range(width)
    ]


def pattern_bars(width: int, height: int, cell: int) -> List[int]:
    return [60 if (x // cell) % 2 == 0 else 190 for y in range(height) for x in range(width)]


def pattern_noise(width: int, height: int, rng: random.Random) -> List[int]:
    return [rng.randint(0, 255) for _ in range(width * height)]


def make_pattern(name: str, width: int, height: int, rng: random.Random) -> List[int]:
    if name == "xor":
        return pattern_xor(width, height)
    if name == "checker":
        return pattern_checker(width, height, max(2, min(width, height) // 4))
    if name == "bars":
        return pattern_bars(width, height, max(2, width // 6))
    if name == "noise":
        return pattern_noise(width, height, rng)
    raise ValueError(f"unknown pattern '{name}'")


def make_background(
    style: str, width: int, height: int, rng: random.Random, value: Optional[int]
) -> List[int]:
    if style == "flat":
        fill = value if value is not None else rng.randint(20, 200)
        return [fill] * (width * height)
    if style == "gradient":
        base = rng.randint(40, 140)
        ax = rng.uniform(-0.8, 0.8)
        ay = rng.uniform(-0.8, 0.8)
        return [clamp_u8(round(base + ax * x + ay * y)) for y in range(height) for x in range(width)]
    if style == "noise":
        return pattern_noise(width, height, rng)
    if style == "mixed":
        base = make_background("gradient", width, height, rng, value)
        return [clamp_u8(v + rng.randint(-20, 20)) for v in base]
    raise ValueError(f"unknown background '{style}'")


def choose_position(
    rng: random.Random, img_w: int, img_h: int, tpl_w: int, tpl_h: int, place_mode: str
) -> Tuple[int, int]:
    # The matcher never evaluates the last row and column of offsets.
    max_x = max(0, img_w - tpl_w - 1)
    max_y = max(0, img_h - tpl_h - 1)
    if place_mode == "edge":
        edge = rng.choice(["left", "right", "top", "bottom"])
        if edge == "left":
            return 0, rng.randint(0, max_y)
        if edge == "right":
            return max_x, rng.randint(0, max_y)
        if edge == "top":
            return rng.randint(0, max_x), 0
        return rng.randint(0, max_x), max_y
    return rng.randint(0, max_x), rng.randint(0, max_y)


def embed_template(
    image: List[int],
    img_w: int,
    tpl: List[int],
    tpl_w: int,
    tpl_h: int,
    x0: int,
    y0: int,
    gain: float,
    bias: float,
) -> None:
    for y in range(tpl_h):
        row = (y0 + y) * img_w + x0
        for x in range(tpl_w):
            image[row + x] = clamp_u8(round(tpl[y * tpl_w + x] * gain + bias))


def add_gaussian_noise_inplace(data: List[int], sigma: float, rng: random.Random) -> None:
    if sigma <= 0.0:
        return
    for i, value in enumerate(data):
        data[i] = clamp_u8(round(value + rng.gauss(0.0, sigma)))


def stable_seed(base_seed: int, case_id: str, index: int) -> int:
    h = 2166136261
    for ch in case_id:
        h = ((h ^ ord(ch)) * 16777619) & 0xFFFFFFFF
    return (h ^ ((index + 1) * 0x9E3779B1) ^ base_seed) & 0xFFFFFFFF


def save_png(path: Path, data: List[int], width: int, height: int) -> None:
    Image.frombytes("L", (width, height), bytes(data)).save(path, format="PNG")


def generate_case(spec: CaseSpec, out_dir: Path, base_seed: int, case_index: int) -> Dict[str, object]:
    case_seed = stable_seed(base_seed, spec.case_id, case_index)
    rng = random.Random(case_seed)

    tpl_w, tpl_h = spec.template_size
    img_w, img_h = spec.image_size
    template = make_pattern(spec.template_pattern, tpl_w, tpl_h, rng)
    image = make_background(spec.background_style, img_w, img_h, rng, spec.background_value)

    instances = []
    if spec.present:
        x0, y0 = choose_position(rng, img_w, img_h, tpl_w, tpl_h, spec.place_mode)
        embed_template(
            image, img_w, template, tpl_w, tpl_h, x0, y0, spec.template_gain, spec.template_bias
        )
        instances.append(
            {"x": x0, "y": y0, "gain": spec.template_gain, "bias": spec.template_bias}
        )
    add_gaussian_noise_inplace(image, spec.noise_sigma, rng)

    match_cfg = dict(DEFAULT_MATCH)
    if spec.match_overrides:
        match_cfg.update(spec.match_overrides)

    save_png(out_dir / "image.png", image, img_w, img_h)
    save_png(out_dir / "template.png", template, tpl_w, tpl_h)

    cli_config = {
        "image_path": "image.png",
        "template_path": "template.png",
        "match": match_cfg,
    }
    with (out_dir / "cli_config.json").open("w", encoding="utf-8") as handle:
        json.dump(cli_config, handle, indent=2, sort_keys=True)

    meta = {
        "case_id": spec.case_id,
        "family": spec.family,
        "seed": case_seed,
        "present": spec.present,
        "image": {"width": img_w, "height": img_h},
        "template": {"width": tpl_w, "height": tpl_h, "pattern": spec.template_pattern},
        "background": {"style": spec.background_style, "value": spec.background_value},
        "effects": {
            "template_gain": spec.template_gain,
            "template_bias": spec.template_bias,
            "noise_sigma": spec.noise_sigma,
        },
        "instances": instances,
        "notes": spec.notes,
    }
    with (out_dir / "meta.json").open("w", encoding="utf-8") as handle:
        json.dump(meta, handle, indent=2, sort_keys=True)

    return {
        "case_id": spec.case_id,
        "family": spec.family,
        "dir": out_dir.name,
        "present": spec.present,
    }


def base_cases_standard() -> List[CaseSpec]:
    return [
        CaseSpec(
            case_id="clean_translation",
            family="translation",
            image_size=(96, 72),
            template_size=(24, 18),
            template_pattern="xor",
            background_style="flat",
        ),
        CaseSpec(
            case_id="gradient_background",
            family="translation",
            image_size=(128, 96),
            template_size=(20, 20),
            template_pattern="noise",
            background_style="gradient",
        ),
        CaseSpec(
            case_id="noise_gaussian",
            family="noise",
            image_size=(96, 72),
            template_size=(24, 20),
            template_pattern="xor",
            background_style="mixed",
            noise_sigma=8.0,
        ),
        CaseSpec(
            case_id="illumination_shift",
            family="illumination",
            image_size=(96, 72),
            template_size=(22, 16),
            template_pattern="checker",
            background_style="gradient",
            template_gain=0.8,
            template_bias=20.0,
            notes="ncc is invariant to gain and bias",
        ),
        CaseSpec(
            case_id="near_border",
            family="edge",
            image_size=(96, 72),
            template_size=(24, 18),
            template_pattern="bars",
            background_style="noise",
            place_mode="edge",
        ),
        CaseSpec(
            case_id="negative_no_match",
            family="negative",
            image_size=(96, 72),
            template_size=(24, 18),
            template_pattern="xor",
            background_style="noise",
            present=False,
        ),
    ]


def base_cases_smoke() -> List[CaseSpec]:
    return [
        CaseSpec(
            case_id="smoke_translation",
            family="translation",
            image_size=(48, 36),
            template_size=(12, 10),
            template_pattern="xor",
            background_style="flat",
        ),
        CaseSpec(
            case_id="smoke_negative",
            family="negative",
            image_size=(48, 36),
            template_size=(12, 10),
            template_pattern="noise",
            background_style="noise",
            present=False,
        ),
    ]


def build_suite(name: str) -> List[CaseSpec]:
    if name == "smoke":
        return base_cases_smoke()
    if name == "standard":
        return base_cases_standard()
    raise ValueError(f"unknown suite '{name}'")


def expand_cases(cases: List[CaseSpec], count: int) -> List[CaseSpec]:
    if count <= 1:
        return cases
    return [
        replace(spec, case_id=f"{spec.case_id}_{idx + 1}") for spec in cases for idx in range(count)
    ]


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic PNG cases for pixcorr.",
    )
    parser.add_argument("--out", type=Path, default=Path("synthetic_cases"))
    parser.add_argument("--suite", choices=["smoke", "standard"], default="standard")
    parser.add_argument("--seed", type=int, default=1337)
    parser.add_argument("--cases-per-family", type=int, default=1)
    parser.add_argument("--overwrite", action="store_true")
    parser.add_argument("--list", action="store_true")
    parser.add_argument("--case", action="append", default=[])
    parser.add_argument("--family", action="append", default=[])
    args = parser.parse_args()

    cases = expand_cases(build_suite(args.suite), args.cases_per_family)
    if args.case:
        cases = [case for case in cases if case.case_id in set(args.case)]
    if args.family:
        cases = [case for case in cases if case.family in set(args.family)]

    if args.list:
        for case in cases:
            print(case.case_id)
        return 0

    out_dir = args.out
    out_dir.mkdir(parents=True, exist_ok=True)

    manifest_cases = []
    for index, spec in enumerate(cases):
        case_dir = out_dir / spec.case_id
        if case_dir.exists():
            if not args.overwrite:
                raise SystemExit(
                    f"{case_dir} already exists. Use --overwrite or choose a new --out."
                )
            shutil.rmtree(case_dir)
        case_dir.mkdir(parents=True)
        manifest_cases.append(generate_case(spec, case_dir, args.seed, index))

    manifest = {
        "suite": args.suite,
        "seed": args.seed,
        "cases_per_family": args.cases_per_family,
        "cases": [entry["case_id"] for entry in manifest_cases],
        "entries": manifest_cases,
    }
    with (out_dir / "manifest.json").open("w", encoding="utf-8") as handle:
        json.dump(manifest, handle, indent=2, sort_keys=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
