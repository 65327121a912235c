"""Unit tests for render configuration.

Tests cover:
- RenderSettings defaults and validation
- Building settings from dictionaries
- Loading JSON render config files
- Backend name validation in init_taichi
"""

import json
from pathlib import Path

import pytest

from src.pathtracer.config import RenderSettings, init_taichi, load_render_config


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults_are_valid(self):
        settings = RenderSettings()
        settings.validate()
        assert settings.aspect_ratio == pytest.approx(400 / 225)

    @pytest.mark.parametrize(
        "overrides, match",
        [
            ({"width": 1}, "at least 2x2"),
            ({"height": 0}, "at least 2x2"),
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"max_depth": -1}, "max_depth"),
            ({"arch": "tpu"}, "Unknown arch"),
        ],
    )
    def test_invalid_settings(self, overrides, match):
        with pytest.raises(ValueError, match=match):
            RenderSettings(**overrides).validate()

    def test_zero_depth_allowed(self):
        RenderSettings(max_depth=0).validate()

    def test_from_dict(self):
        settings = RenderSettings.from_dict({"width": 64, "height": 32, "samples_per_pixel": 4})
        assert (settings.width, settings.height, settings.samples_per_pixel) == (64, 32, 4)
        assert settings.max_depth == 50

    def test_from_dict_ignores_unknown_keys(self, caplog):
        settings = RenderSettings.from_dict({"width": 64, "gamma": 2.2})
        assert settings.width == 64
        assert "gamma" in caplog.text

    def test_from_dict_validates(self):
        with pytest.raises(ValueError):
            RenderSettings.from_dict({"width": -5})


class TestLoadRenderConfig:
    """Tests for load_render_config."""

    def test_full_config(self, tmp_path: Path):
        path = tmp_path / "render.json"
        path.write_text(
            json.dumps(
                {
                    "render": {"width": 80, "height": 40, "samples_per_pixel": 2, "max_depth": 5},
                    "camera": {"lookfrom": [0, 0, 0], "lookat": [0, 0, -1], "vfov": 90, "aspect_ratio": 2},
                    "scene": {"materials": [], "spheres": []},
                }
            )
        )

        config = load_render_config(path)

        assert config["render"] == RenderSettings(width=80, height=40, samples_per_pixel=2, max_depth=5)
        assert config["camera"]["vfov"] == 90
        assert config["scene"] == {"materials": [], "spheres": []}

    def test_sections_are_optional(self, tmp_path: Path):
        path = tmp_path / "render.json"
        path.write_text("{}")

        config = load_render_config(path)

        assert config["render"] == RenderSettings()
        assert config["camera"] is None
        assert config["scene"] is None

    def test_non_object_rejected(self, tmp_path: Path):
        path = tmp_path / "render.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ValueError, match="JSON object"):
            load_render_config(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_render_config(tmp_path / "missing.json")


class TestInitTaichi:
    """Tests for init_taichi argument checking."""

    def test_unknown_arch_rejected_before_init(self):
        # Raises before touching the running Taichi session
        with pytest.raises(ValueError, match="Unknown arch"):
            init_taichi("quantum")
