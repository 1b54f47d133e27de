"""Tests for the conversion pipeline."""

import logging

import numpy as np
import pytest

from scnconv.core.config import ConversionConfig
from scnconv.core.errors import SceneLoadError, SelectionTargetNotFound
from scnconv.core.pipeline import SceneConverter, convert_scene
from scnconv.mesh.loader import load_scene, save_scene


@pytest.fixture
def house_file(house_scene, tmp_path):
    """The house scene written to a GLB file."""
    path = tmp_path / "house.glb"
    save_scene(house_scene, path)
    return path


class TestSceneConverter:
    """Test SceneConverter stage handling."""

    def test_plain_conversion(self, house_file, tmp_path):
        """Test that a default config only reads and writes."""
        output = tmp_path / "house.obj"

        result = convert_scene(house_file, output)

        assert output.exists()
        assert [r.stage for r in result.reports] == ["read", "write"]
        assert result.report("read").stats["num_geometries"] == 4
        assert result.report("write").path == output

    def test_stage_order(self, house_file, tmp_path):
        """Test that edits run in their fixed order."""
        config = ConversionConfig()
        config.selection.subtree = "room1"
        config.add_transform("tx", 1.0)
        config.processing.remove_references = True
        config.processing.remove_hierarchy = True
        config.processing.remove_transformations = True
        config.processing.max_edge_length = 0.5

        result = SceneConverter(config).convert(house_file, tmp_path / "out.glb")

        assert [r.stage for r in result.reports] == [
            "read",
            "prune",
            "transform",
            "remove_references",
            "remove_hierarchy",
            "remove_transformations",
            "subdivide",
            "write",
        ]

    def test_stage_callback(self, house_file, tmp_path):
        """Test that each report is passed to the callback as it happens."""
        seen = []
        config = ConversionConfig()
        config.add_transform("scale", 2.0)

        SceneConverter(config, on_stage=seen.append).convert(house_file, tmp_path / "out.glb")

        assert [r.stage for r in seen] == ["read", "transform", "write"]

    def test_identity_transform_skipped(self, house_file, tmp_path):
        """Test that transforms with no net effect do not run the stage."""
        config = ConversionConfig()
        config.add_transform("rz", 360.0)
        config.add_transform("scale", 1.0)

        result = SceneConverter(config).convert(house_file, tmp_path / "out.glb")

        assert result.report("transform") is None

    def test_prune_and_transform(self, house_file, tmp_path):
        """Test subtree selection and placement edits end to end."""
        output = tmp_path / "room.glb"
        config = ConversionConfig()
        config.selection.subtree = "room2"
        config.add_transform("tz", 3.0)

        result = SceneConverter(config).convert(house_file, output)

        assert result.report("prune").result == 4
        loaded = load_scene(output)
        assert loaded.node("bed") is not None
        assert loaded.node("chair") is None
        bbox = loaded.node("bed").world_bbox()
        np.testing.assert_array_almost_equal(bbox.min, [9.0, -1.0, 2.0], decimal=5)
        np.testing.assert_array_almost_equal(bbox.max, [11.0, 1.0, 4.0], decimal=5)

    def test_missing_subtree(self, house_file, tmp_path):
        """Test that an unknown subtree target is fatal and nothing is written."""
        output = tmp_path / "out.glb"
        config = ConversionConfig()
        config.selection.subtree = "attic"

        with pytest.raises(SelectionTargetNotFound):
            SceneConverter(config).convert(house_file, output)
        assert not output.exists()

    def test_missing_input(self, tmp_path):
        """Test that a missing input is fatal."""
        with pytest.raises(SceneLoadError):
            convert_scene(tmp_path / "missing.glb", tmp_path / "out.glb")

    def test_metadata_files(self, house_file, tmp_path):
        """Test that category and light tables are read before editing."""
        categories = tmp_path / "categories.csv"
        categories.write_text("model_id,category\nbed,Bed\n")
        lights = tmp_path / "lights.json"
        lights.write_text('{"bed": {"type": "point"}}')

        config = ConversionConfig(categories_file=categories, lights_file=lights)
        result = SceneConverter(config).convert(house_file, tmp_path / "out.glb")

        assert result.report("categories").result == 1
        assert result.report("lights").result == 1
        assert result.scene.node("bed").info["category"] == "Bed"
        assert result.scene.lights == [{"type": "point", "node": "bed"}]

    def test_matrix_file_reported_before_load(self, tmp_path, caplog):
        """Test that a bad matrix file is logged even when the input is missing."""
        config = ConversionConfig()
        config.add_transform("xform", str(tmp_path / "missing_matrix.txt"))

        with caplog.at_level(logging.ERROR):
            with pytest.raises(SceneLoadError):
                SceneConverter(config).convert(tmp_path / "missing.glb", tmp_path / "out.glb")

        assert "missing_matrix.txt" in caplog.text

    def test_selection_removes_everything(self, house_file, tmp_path):
        """Test that a selection matching nothing still writes the root-only scene."""
        output = tmp_path / "out.glb"
        config = ConversionConfig()
        config.selection.bbox = (500.0, 500.0, 500.0, 501.0, 501.0, 501.0)

        result = SceneConverter(config).convert(house_file, output)

        assert output.exists()
        assert result.report("write").stats["num_geometries"] == 0
        assert len(result.scene) == 1
