"""
Tunable constants of the column segmenter.

Defaults were calibrated on the Amazon six-letter captcha rendering.
Override them (or pass the CLI flags) when recalibrating for another set.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

CHARACTER_COUNT = 6
DEFAULT_CONFIDENCE = 0.95
DEFAULT_MODEL_PATH = "best_char_recognition_model.pth"


@dataclass(frozen=True)
class SolverConfig:
    max_char_width: int = 33      # wider spans hold two merged characters
    min_char_width: int = 14      # narrower leading span = degenerate input
    split_margin: int = 5         # columns skipped on each side when searching a divider
    ink_cutoff: int = 2           # gray values below this are ink
    glyph_size: int = 33          # side of the normalized square glyph
    placeholder_width: int = 200
    placeholder_height: int = 700
    model_path: Optional[Union[str, Path]] = None

    def __post_init__(self) -> None:
        for name in ("max_char_width", "min_char_width", "glyph_size",
                     "placeholder_width", "placeholder_height"):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive")

        # margin 0 lets the divider land on a span edge and leave an empty half
        if self.split_margin < 1:
            raise ValueError("split_margin must be >= 1")
        if self.min_char_width > self.max_char_width:
            raise ValueError("min_char_width must not exceed max_char_width")
        if not 1 <= self.ink_cutoff <= 255:
            raise ValueError("ink_cutoff must be within [1, 255]")
