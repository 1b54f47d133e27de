"""Tests for the command-line interface."""

import numpy as np
import pytest
import trimesh
from click.testing import CliRunner

from scnconv.cli import _transform_order, main
from scnconv.mesh.loader import load_scene


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def box_file(tmp_path):
    """A GLB holding one 2x2x2 box centred on the origin."""
    path = tmp_path / "box.glb"
    trimesh.creation.box(extents=(2.0, 2.0, 2.0)).export(str(path))
    return path


def _output_bounds(path):
    bbox = load_scene(path).stats()["bbox"]
    return np.array([bbox.min, bbox.max])


class TestTransformOrder:
    """Test recovering the order of transform options."""

    def test_interleaved(self):
        """Test that repeated options keep their relative order."""
        params = main.params
        args = ["in.glb", "out.glb", "-tx", "5", "-sx", "2", "-tx", "-1", "-rz", "90"]

        assert _transform_order(params, args) == ["tx", "sx", "tx", "rz"]

    def test_skips_other_options(self):
        """Test that option values are not mistaken for options."""
        params = main.params
        args = [
            "-select_nodes_in_bbox", "0", "0", "0", "1", "1", "1",
            "-v", "-select_nodes_in_subtree", "-tx",
            "-scale", "3",
        ]

        assert _transform_order(params, args) == ["scale"]


class TestMain:
    """Test running the command."""

    def test_help(self, runner):
        """Test that help lists the single-dash options."""
        result = runner.invoke(main, ["-help"])
        assert result.exit_code == 0
        assert "-select_nodes_in_bbox" in result.output

    def test_missing_arguments(self, runner):
        """Test that too few positional arguments is a usage error."""
        result = runner.invoke(main, ["only_input.glb"])
        assert result.exit_code == 2

    def test_unknown_option(self, runner, box_file, tmp_path):
        """Test that an unknown option is a usage error."""
        result = runner.invoke(main, [str(box_file), str(tmp_path / "out.glb"), "-frobnicate"])
        assert result.exit_code == 2

    def test_bad_bbox_arity(self, runner, box_file, tmp_path):
        """Test that the bbox option needs six numbers."""
        result = runner.invoke(
            main, [str(box_file), str(tmp_path / "out.glb"), "-select_nodes_in_bbox", "0", "0", "0"]
        )
        assert result.exit_code == 2

    def test_plain_conversion(self, runner, box_file, tmp_path):
        """Test converting without edits."""
        output = tmp_path / "box.obj"
        result = runner.invoke(main, [str(box_file), str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()

    def test_translate_then_scale(self, runner, box_file, tmp_path):
        """Test -tx 5 -sx 2 moves the box to x in [3, 7]."""
        output = tmp_path / "out.glb"
        result = runner.invoke(main, [str(box_file), str(output), "-tx", "5", "-sx", "2"])

        assert result.exit_code == 0, result.output
        bounds = _output_bounds(output)
        np.testing.assert_array_almost_equal(bounds[:, 0], [3.0, 7.0], decimal=5)

    def test_scale_then_translate(self, runner, box_file, tmp_path):
        """Test that swapping the options changes the result."""
        output = tmp_path / "out.glb"
        result = runner.invoke(main, [str(box_file), str(output), "-sx", "2", "-tx", "5"])

        assert result.exit_code == 0, result.output
        bounds = _output_bounds(output)
        np.testing.assert_array_almost_equal(bounds[:, 0], [8.0, 12.0], decimal=5)

    def test_negative_values(self, runner, box_file, tmp_path):
        """Test that negative numbers are taken as option values."""
        output = tmp_path / "out.glb"
        result = runner.invoke(main, [str(box_file), str(output), "-tz", "-4"])

        assert result.exit_code == 0, result.output
        np.testing.assert_array_almost_equal(_output_bounds(output)[:, 2], [-5.0, -3.0], decimal=5)

    def test_bad_matrix_file_continues(self, runner, box_file, tmp_path):
        """Test that an unreadable matrix file is reported and skipped."""
        output = tmp_path / "out.glb"
        result = runner.invoke(
            main,
            [str(box_file), str(output), "-xform", str(tmp_path / "missing.txt"), "-ty", "1"],
        )

        assert result.exit_code == 0, result.output
        assert output.exists()
        np.testing.assert_array_almost_equal(_output_bounds(output)[:, 1], [0.0, 2.0], decimal=5)

    def test_missing_subtree(self, runner, box_file, tmp_path):
        """Test that an unknown subtree name aborts with status 1."""
        output = tmp_path / "out.glb"
        result = runner.invoke(
            main, [str(box_file), str(output), "-select_nodes_in_subtree", "nowhere"]
        )

        assert result.exit_code == 1
        assert "Unable to find select subtree node nowhere" in result.output
        assert not output.exists()

    def test_missing_input(self, runner, tmp_path):
        """Test that a missing input file aborts with status 1."""
        result = runner.invoke(main, [str(tmp_path / "missing.glb"), str(tmp_path / "out.glb")])
        assert result.exit_code == 1

    def test_verbose_prints_stats(self, runner, box_file, tmp_path):
        """Test that -v prints per-stage statistics."""
        result = runner.invoke(main, [str(box_file), str(tmp_path / "out.glb"), "-v", "-scale", "2"])

        assert result.exit_code == 0, result.output
        assert "Read scene" in result.output
        assert "Transformed scene root" in result.output
        assert "Wrote scene" in result.output

    def test_config_file(self, runner, box_file, tmp_path):
        """Test that a config file supplies edits and options extend it."""
        config = tmp_path / "config.json"
        config.write_text('{"transforms": [{"kind": "tx", "value": 5}]}')
        output = tmp_path / "out.glb"

        result = runner.invoke(main, [str(box_file), str(output), "-config", str(config), "-sx", "2"])

        assert result.exit_code == 0, result.output
        np.testing.assert_array_almost_equal(_output_bounds(output)[:, 0], [3.0, 7.0], decimal=5)

    @pytest.mark.parametrize("suffix", [".glb", ".gltf", ".obj", ".ply", ".stl", ".off", ".dae"])
    def test_selection_matching_nothing(self, runner, box_file, tmp_path, suffix):
        """Test that pruning everything still writes an output file."""
        output = tmp_path / f"out{suffix}"
        result = runner.invoke(
            main,
            [str(box_file), str(output), "-select_nodes_in_bbox", "100", "100", "100", "101", "101", "101"],
        )

        assert result.exit_code == 0, result.output
        assert output.exists()

    @pytest.mark.parametrize("length", ["0", "-1"])
    def test_non_positive_edge_length_disables(self, runner, box_file, tmp_path, length):
        """Test that an edge length of 0 or less turns subdivision off."""
        output = tmp_path / "out.glb"
        result = runner.invoke(main, [str(box_file), str(output), "-max_edge_length", length])

        assert result.exit_code == 0, result.output
        assert len(load_scene(output).geometries[0].faces) == 12
