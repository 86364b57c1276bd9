"""
Tests for the chaos game orchestrator.

Validates:
  - Transform selection by cumulative probability
  - Stochastic walk keeps every candidate point
  - Divergence scan on a single Julia transform
  - Mutators recompute and notify observers
"""

import logging

import numpy as np
import pytest

from fractal_forge.acceleration.parallel import ParallelPainter
from fractal_forge.core.description import FractalDescription
from fractal_forge.core.game import (
    ChaosGame,
    RunMode,
    julia_branch_probabilities,
    select_transform_index,
)
from fractal_forge.core.geometry import Complex, Matrix, Vector
from fractal_forge.core.presets import barnsley_fern, julia_set
from fractal_forge.core.transforms import AffineTransform, JuliaTransform


def halving_description():
    """Single contraction x -> x/2 + (1, 1); the walk converges to (2, 2)."""
    return FractalDescription(
        Vector(0.0, 0.0), Vector(4.0, 4.0),
        [AffineTransform(Matrix(0.5, 0.0, 0.0, 0.5), Vector(1.0, 1.0))],
    )


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


# ---------- Selection Tests ----------

class TestSelection:
    def test_smallest_threshold_at_or_above(self):
        cumulative = [1.0, 86.0, 93.0, 100.0]
        assert select_transform_index(cumulative, 0) == 0
        assert select_transform_index(cumulative, 1) == 0
        assert select_transform_index(cumulative, 2) == 1
        assert select_transform_index(cumulative, 86) == 1
        assert select_transform_index(cumulative, 87) == 2
        assert select_transform_index(cumulative, 99) == 3

    def test_boundary_draws_valid(self):
        for count in range(1, 12):
            cumulative = [100 * (i + 1) // count for i in range(count)]
            for draw in (0, 99):
                assert 0 <= select_transform_index(cumulative, draw) < count

    def test_clamped_to_last(self):
        assert select_transform_index([10.0, 20.0], 99) == 1

    def test_julia_ladder(self):
        assert julia_branch_probabilities(1) == [50, 100]
        assert julia_branch_probabilities(2) == [50, 100, 150, 200]


# ---------- Stochastic Walk Tests ----------

class TestStochasticWalk:
    def test_point_count_affine(self):
        game = ChaosGame(barnsley_fern(), 50, 50, steps=200, seed=1)
        game.run_steps()
        assert len(game.point_array) == 1 + 4 * 200

    def test_starts_at_origin(self):
        game = ChaosGame(barnsley_fern(), 50, 50, steps=10, seed=1)
        game.run_steps()
        assert game.points[0] == Vector(0.0, 0.0)

    def test_deterministic_walk(self):
        game = ChaosGame(halving_description(), 20, 20, steps=5, seed=0)
        game.run_steps()
        expected = [0.0, 1.0, 1.5, 1.75, 1.875, 1.9375]
        assert game.point_array[:, 0].tolist() == expected
        assert game.current_point == Vector(1.9375, 1.9375)

    def test_every_hit_painted(self):
        game = ChaosGame(barnsley_fern(), 60, 60, steps=500, seed=3)
        game.run_steps()
        rows, _ = game.canvas.map_points(game.point_array)
        assert game.canvas.get_canvas_array().sum() == pytest.approx(0.5 * len(rows))

    def test_same_seed_same_canvas(self):
        first = ChaosGame(barnsley_fern(), 40, 40, steps=300, seed=42)
        second = ChaosGame(barnsley_fern(), 40, 40, steps=300, seed=42)
        first.run_steps()
        second.run_steps()
        np.testing.assert_array_equal(first.canvas.get_canvas_array(),
                                      second.canvas.get_canvas_array())

    def test_run_clears_previous(self):
        game = ChaosGame(barnsley_fern(), 40, 40, steps=100, seed=7)
        game.run_steps()
        total = game.canvas.get_canvas_array().sum()
        game.reseed(7)
        game.run_steps()
        assert game.canvas.get_canvas_array().sum() == total

    def test_divergent_maps_are_tolerated(self, three_affine):
        game = ChaosGame(three_affine, 30, 30, steps=400, seed=2)
        with np.errstate(all='ignore'):
            game.run_steps()
        assert len(game.point_array) == 1 + 3 * 400

    def test_julia_doubles_transforms(self, julia_description):
        game = ChaosGame(julia_description, 40, 40, steps=100, seed=5)
        game.run_steps()
        points = game.point_array
        assert len(points) == 1 + 2 * 100
        np.testing.assert_allclose(points[1], -points[2])

    def test_julia_walk_follows_selected_candidate(self, julia_description):
        game = ChaosGame(julia_description, 40, 40, steps=50, seed=5)
        game.run_steps()
        points = game.points
        transform = julia_description.transforms[0]
        # The last batch was computed from one of the two previous candidates
        expected = [transform.forward(points[-4]), transform.forward(points[-3])]
        assert any(np.allclose(points[-2].to_array(), candidate.to_array())
                   for candidate in expected)

    def test_negative_steps(self):
        with pytest.raises(ValueError):
            ChaosGame(barnsley_fern(), 10, 10, steps=-1)

    def test_zero_steps_paints_origin(self):
        game = ChaosGame(halving_description(), 10, 10, steps=0)
        game.run_steps()
        assert len(game.point_array) == 1
        assert game.canvas.get_canvas_array().sum() == 0.5

    def test_parallel_painter_matches_serial(self):
        serial = ChaosGame(barnsley_fern(), 64, 64, steps=3000, seed=9,
                           painter=ParallelPainter(num_workers=1))
        parallel = ChaosGame(barnsley_fern(), 64, 64, steps=3000, seed=9,
                             painter=ParallelPainter(num_workers=4, chunk_size=997))
        serial.run_steps()
        parallel.run_steps()
        np.testing.assert_array_equal(serial.canvas.get_canvas_array(),
                                      parallel.canvas.get_canvas_array())


# ---------- Divergence Scan Tests ----------

class TestDivergenceScan:
    def test_grid(self):
        game = ChaosGame(julia_set(Complex(0.0, 0.0)), 4, 2, mode=RunMode.DIVERGENCE)
        zx, zy = game.divergence_grid()
        assert zx.shape == (2, 4)
        assert zx[0].tolist() == [-1.5, -0.75, 0.0, 0.75]
        assert zy[:, 0].tolist() == [-1.0, 0.0]

    def test_grid_too_small(self):
        game = ChaosGame(julia_set(Complex(0.0, 0.0)), 1, 10)
        with pytest.raises(ValueError):
            game.divergence_grid()

    def test_interior_points_painted(self):
        description = julia_set(Complex(-0.1, 0.1))
        game = ChaosGame(description, 40, 30, mode=RunMode.DIVERGENCE)
        game.run_divergence()
        zx, zy = game.divergence_grid()
        iterations = description.transforms[0].divergence_test_grid(zx, zy)
        assert len(game.point_array) == int(np.count_nonzero(iterations == 0))
        assert game.canvas.get_canvas_array().sum() > 0

    def test_origin_is_interior_for_zero_constant(self):
        game = ChaosGame(julia_set(Complex(0.0, 0.0)), 10, 10)
        game.run_divergence()
        assert any(point == Vector(0.0, 0.0) for point in game.points)

    def test_rejects_affine(self):
        game = ChaosGame(barnsley_fern(), 10, 10)
        with pytest.raises(ValueError):
            game.run_divergence()

    def test_rejects_multiple_transforms(self, julia_description):
        julia_description.add_transform(JuliaTransform(Complex(0.1, 0.1)))
        game = ChaosGame(julia_description, 10, 10)
        with pytest.raises(ValueError):
            game.run_divergence()

    def test_refresh_logs_misuse(self, caplog):
        game = ChaosGame(barnsley_fern(), 10, 10, mode=RunMode.DIVERGENCE)
        counter = Counter()
        game.add_observer(counter)
        with caplog.at_level(logging.ERROR):
            game.refresh()
        assert counter.calls == 1
        assert game.canvas.get_canvas_array().sum() == 0.0
        assert "Divergence scan" in caplog.text


# ---------- Mutator Tests ----------

class TestMutators:
    def setup_method(self):
        self.game = ChaosGame(barnsley_fern(), 30, 30, steps=100, seed=4)
        self.counter = Counter()
        self.game.add_observer(self.counter)

    def test_set_steps_recomputes(self):
        self.game.set_steps(50)
        assert self.counter.calls == 1
        assert len(self.game.point_array) == 1 + 4 * 50

    def test_remove_observer(self):
        self.game.remove_observer(self.counter)
        self.game.set_steps(10)
        assert self.counter.calls == 0

    def test_set_resolution(self):
        self.game.set_resolution(40, 20)
        assert self.game.canvas.get_canvas_array().shape == (20, 40)
        assert self.counter.calls == 1
        with pytest.raises(ValueError):
            self.game.set_resolution(0, 10)

    def test_set_size(self):
        self.game.set_size(25)
        assert self.game.canvas.get_canvas_array().shape == (25, 25)

    def test_zoom(self):
        self.game.zoom(0.5)
        assert self.game.description.min_coords.to_list() == pytest.approx([-2.15, 0.5])
        assert self.game.description.max_coords.to_list() == pytest.approx([2.15, 9.5])
        assert self.game.canvas.min_coords == self.game.description.min_coords
        assert self.counter.calls == 1

    def test_zoom_keeps_transforms(self):
        transforms = self.game.description.transforms
        self.game.zoom(-1.0)
        assert self.game.description.transforms is transforms

    def test_set_bounds(self):
        self.game.set_bounds(Vector(-1.0, -1.0), Vector(1.0, 1.0))
        assert self.game.canvas.max_coords == Vector(1.0, 1.0)

    def test_add_default_transform(self):
        self.game.add_transform()
        transforms = self.game.description.transforms
        assert len(transforms) == 5
        assert transforms[-1] == AffineTransform.zeros(2)
        assert not self.game.description.has_explicit_probability
        assert len(self.game.point_array) == 1 + 5 * 100

    def test_remove_transform_by_value(self):
        target = AffineTransform(Matrix(0.0, 0.0, 0.0, 0.16), Vector(0.0, 0.0))
        self.game.remove_transform(target)
        assert len(self.game.description.transforms) == 3
        assert self.counter.calls == 1

    def test_add_wrong_dimension_transform(self):
        self.game.run()
        before = np.array(self.game.canvas.get_canvas_array())
        with pytest.raises(ValueError):
            self.game.add_transform(AffineTransform.zeros(3))
        assert len(self.game.description.transforms) == 4
        assert self.game.description.has_explicit_probability
        assert self.counter.calls == 0
        np.testing.assert_array_equal(self.game.canvas.get_canvas_array(), before)

    def test_remove_missing_transform(self):
        self.game.remove_transform(AffineTransform.identity(2))
        assert len(self.game.description.transforms) == 4
        assert self.counter.calls == 1

    def test_set_probability(self):
        self.game.set_probability(Vector(25.0, 50.0, 75.0, 100.0))
        assert self.game.description.get_probability() == Vector(25.0, 50.0, 75.0, 100.0)

    def test_set_mode(self):
        self.game.set_mode(RunMode.DIVERGENCE)
        assert self.game.mode is RunMode.DIVERGENCE
        assert self.counter.calls == 1

    def test_julia_parameters_need_julia(self):
        with pytest.raises(ValueError):
            self.game.set_julia_point(0.1, 0.2)

    def test_update_canvas_does_not_run(self):
        self.game.run_steps()
        self.game.update_canvas()
        assert self.game.canvas.get_canvas_array().sum() == 0.0
        assert self.counter.calls == 1


class TestJuliaMutators:
    def test_set_julia_point(self, julia_description):
        game = ChaosGame(julia_description, 20, 20, steps=20, seed=1)
        game.set_julia_point(0.25, -0.5)
        assert julia_description.transforms[0].point == Complex(0.25, -0.5)

    def test_set_julia_power(self, julia_description):
        julia_description.add_transform(JuliaTransform(Complex(0.1, 0.1)))
        game = ChaosGame(julia_description, 20, 20, steps=20, seed=1)
        game.set_julia_power(3)
        assert all(transform.power == 3 for transform in julia_description.transforms)

    def test_add_default_julia_transform(self, julia_description):
        game = ChaosGame(julia_description, 20, 20, steps=20, seed=1)
        game.add_transform()
        assert julia_description.transforms[-1] == JuliaTransform(Complex(0.0, 0.0), 1)
        assert len(game.point_array) == 1 + 4 * 20
