import pytest

from solver_config import SolverConfig


def test_defaults():
    config = SolverConfig()

    assert (config.max_char_width, config.min_char_width, config.split_margin) == (33, 14, 5)
    assert config.ink_cutoff == 2
    assert config.glyph_size == 33


@pytest.mark.parametrize("overrides", [
    {"max_char_width": 0},
    {"glyph_size": -1},
    {"split_margin": -1},
    {"split_margin": 0},
    {"min_char_width": 40},
    {"ink_cutoff": 0},
    {"ink_cutoff": 256},
])
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValueError):
        SolverConfig(**overrides)
