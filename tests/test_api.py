"""
Tests for the high-level session API.

Validates:
  - Loading descriptions from objects, presets, files and saved state
  - Rendering, image export and remembering the last description
  - Observers are notified after every recompute
"""

import numpy as np
import pytest

from fractal_forge.api import FractalForge, ForgeConfig
from fractal_forge.core.presets import barnsley_fern, create_preset, sierpinski_triangle
from fractal_forge.io.description_file import read_description, write_description
from fractal_forge.io.state import AppContext


def small_config(**changes):
    values = dict(width=48, height=48, steps=2000, seed=1, workers=1)
    values.update(changes)
    return ForgeConfig(**values)


class TestLoading:
    def test_default_is_fern(self, context):
        forge = FractalForge(small_config(), context)
        assert forge.load() == barnsley_fern()

    def test_preset(self, context):
        forge = FractalForge(small_config(), context)
        assert forge.load("sierpinski") == sierpinski_triangle()

    def test_description_object(self, context, three_affine):
        forge = FractalForge(small_config(), context)
        assert forge.load(three_affine) is three_affine

    def test_file(self, tmp_path, context):
        path = tmp_path / "triangle.txt"
        write_description(sierpinski_triangle(), path)
        forge = FractalForge(small_config(), context)
        assert forge.load(str(path)) == sierpinski_triangle()

    def test_unreadable_file_falls_back(self, tmp_path, context):
        forge = FractalForge(small_config(), context)
        assert forge.load(tmp_path / "missing.txt") == barnsley_fern()

    def test_undecodable_file_falls_back(self, tmp_path, context):
        path = tmp_path / "binary.txt"
        path.write_bytes(b"Affine2D\n\xff\xfe, 0\n1, 1\n")
        forge = FractalForge(small_config(), context)
        assert forge.load(path) == barnsley_fern()

    def test_wrong_dimension_file_falls_back(self, tmp_path, context):
        path = tmp_path / "short.txt"
        path.write_text("Affine2D\n0, 0\n1, 1\n0.5, 0.25\n")
        forge = FractalForge(small_config(), context)
        assert forge.load(path) == barnsley_fern()

    def test_remembered_description(self, context):
        context.save_last_description(sierpinski_triangle())
        forge = FractalForge(small_config(), AppContext(context.state_path))
        assert forge.load() == sierpinski_triangle()

    def test_power_applied_to_julia(self, context):
        forge = FractalForge(small_config(power=3), context)
        description = forge.load("dragon")
        assert description.transforms[0].power == 3

    def test_invalid_config(self, context):
        with pytest.raises(ValueError):
            FractalForge(ForgeConfig(width=0), context)


class TestRendering:
    def test_render_density(self, context):
        forge = FractalForge(small_config(), context)
        forge.load("barnsley")
        density = forge.render()
        assert density.shape == (48, 48)
        assert density.sum() > 0
        density[0, 0] = -1.0
        assert forge.density()[0, 0] != -1.0

    def test_render_loads_on_demand(self, context):
        forge = FractalForge(small_config(), context)
        assert forge.render().sum() > 0
        assert forge.description == barnsley_fern()

    def test_same_seed_same_render(self, context):
        first = FractalForge(small_config(seed=5), context)
        second = FractalForge(small_config(seed=5), context)
        first.load("sierpinski")
        second.load("sierpinski")
        np.testing.assert_array_equal(first.render(), second.render())

    def test_divergence_mode(self, context):
        forge = FractalForge(small_config(mode="divergence"), context)
        forge.load("san_marco")
        assert forge.render().sum() > 0

    def test_divergence_mode_needs_julia(self, context):
        forge = FractalForge(small_config(mode="divergence"), context)
        forge.load("barnsley")
        with pytest.raises(ValueError):
            forge.render()

    def test_to_image(self, context):
        forge = FractalForge(small_config(heatmap=True), context)
        forge.render()
        image = forge.to_image()
        assert image.shape == (48, 48, 3)
        assert image.min() >= 0.0
        assert image.max() <= 1.0

    def test_observers(self, context):
        calls = []
        forge = FractalForge(small_config(), context)
        forge.add_observer(lambda: calls.append("changed"))
        forge.load("barnsley")
        forge.render()
        forge.zoom(0.1)
        forge.set_resolution(32, 24)
        assert len(calls) == 3
        assert forge.density().shape == (24, 32)

    def test_info(self, context):
        forge = FractalForge(small_config(steps=100), context)
        forge.load("barnsley")
        forge.render()
        info = forge.get_info()
        assert info['fractal_type'] == "Affine2D"
        assert info['transforms'] == 4
        assert info['points'] == 1 + 4 * 100
        assert info['explicit_probability'] is True


class TestSaving:
    def test_save_image(self, tmp_path, context):
        forge = FractalForge(small_config(save_raw_data=True), context)
        forge.render()
        saved = forge.save_image(tmp_path / "fern.png")
        assert saved.exists()
        assert saved.with_suffix(".npy").exists()
        metadata = forge.image_exporter.extract_metadata_from_image(saved)
        assert metadata.transform_count == 4
        assert metadata.resolution == (48, 48)

    def test_default_suffix(self, tmp_path, context):
        forge = FractalForge(small_config(output_format="jpg", save_metadata=False), context)
        forge.render()
        saved = forge.save_image(tmp_path / "fern")
        assert saved.suffix == ".jpg"
        assert not saved.with_suffix(".json").exists()

    def test_save_description(self, tmp_path, context):
        forge = FractalForge(small_config(), context)
        forge.load("rabbit")
        path = tmp_path / "rabbit.txt"
        forge.save_description(path)
        assert read_description(path) == create_preset("rabbit")

    def test_remember(self, context):
        forge = FractalForge(small_config(), context)
        forge.load("sierpinski")
        assert forge.remember()
        assert AppContext(context.state_path).description == sierpinski_triangle()
