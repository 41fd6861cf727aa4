import pytest

from config import DetectionConfig, load_config


def test_defaults():
    config = DetectionConfig()
    assert config.candidate_sizes == (3, 4, 5, 6, 7)
    assert config.fallback_size == 5
    assert config.min_alpha == 128
    assert config.blocked_blue_ratio == 0.25


def test_with_grid_size():
    config = DetectionConfig().with_grid_size(6)
    assert config.candidate_sizes == (6,)
    assert config.fallback_size == 6


@pytest.mark.parametrize("kwargs", [
    {"candidate_sizes": ()},
    {"candidate_sizes": (0, 3)},
    {"fallback_size": 0},
    {"samples_per_cell": 0},
    {"yellow_ratio": 1.5},
    {"dark_ratio": -0.1},
])
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        DetectionConfig(**kwargs)


def test_load_config_overrides(tmp_path):
    path = tmp_path / "detect.yaml"
    path.write_text("candidate_sizes: [5, 6]\nblocked_blue_ratio: 0.4\n", encoding="utf-8")
    config = load_config(path)
    assert config.candidate_sizes == (5, 6)
    assert config.blocked_blue_ratio == 0.4
    assert config.dark_ratio == DetectionConfig().dark_ratio


def test_load_config_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize("text", [
    "",
    "- 1\n- 2\n",
    "no_such_threshold: 3\n",
    "candidate_sizes: 5\n",
    "candidate_sizes: [3, four]\n",
    "samples_per_cell: many\n",
    "yellow_ratio: high\n",
    "min_cell_pixels: -1\n",
    "min_cell_pixels: 2.5\n",
    "fallback_size: yes\n",
])
def test_load_config_rejects(tmp_path, text):
    path = tmp_path / "detect.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
