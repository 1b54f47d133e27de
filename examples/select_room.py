#!/usr/bin/env python3
"""Example: Cut one room out of a small house scene.

This script demonstrates the basic workflow for scnconv:
1. Build (or load) a scene
2. Configure selection, placement edits and processing
3. Convert and inspect what each stage did

Run with: python examples/select_room.py
"""

import tempfile
from pathlib import Path

import trimesh

from scnconv import AffineTransform, ConversionConfig, Scene, SceneConverter, SceneNode
from scnconv.mesh import save_scene


def create_house() -> Scene:
    """Create a house with two furnished rooms and a garden."""
    scene = Scene(name="house")
    house = scene.add_node(SceneNode("house"))

    for i, x in enumerate((0.0, 6.0), start=1):
        room = scene.add_node(SceneNode(f"room{i}", AffineTransform.translation("x", x)), house)
        floor = trimesh.creation.box(extents=[5.0, 5.0, 0.1])
        scene.add_node(SceneNode(f"floor{i}", elements=[floor]), room)

    # Both chairs share one mesh
    chair = trimesh.creation.box(extents=[0.5, 0.5, 1.0])
    for name, room, y in (("chair1", "room1", -1.0), ("chair2", "room2", 1.0)):
        placement = AffineTransform.translation("y", y).then(AffineTransform.translation("z", 0.5))
        scene.add_node(SceneNode(name, placement, [chair]), scene.node(room))

    garden = trimesh.creation.box(extents=[20.0, 10.0, 0.01])
    scene.add_node(SceneNode("garden", AffineTransform.translation("y", 10.0), [garden]))
    return scene


def main():
    print("scnconv - Select Room Example")
    print("=" * 40)

    workdir = Path(tempfile.mkdtemp(prefix="scnconv_"))
    input_path = workdir / "house.glb"
    output_path = workdir / "room2.glb"

    print("\n1. Creating house scene...")
    scene = create_house()
    save_scene(scene, input_path)
    print(f"   Wrote {len(scene)} nodes to {input_path}")

    print("\n2. Configuring conversion...")
    config = ConversionConfig()
    config.selection.subtree = "room2"
    config.add_transform("rz", 90.0)
    config.add_transform("tz", -0.05)
    config.processing.remove_references = True
    config.processing.remove_hierarchy = True

    print("\n3. Converting...")
    result = SceneConverter(config).convert(input_path, output_path)

    for report in result.reports:
        detail = "" if report.result is None else f" -> {report.result}"
        print(f"   {report.stage:<24}{report.seconds:.3f} s{detail}")

    stats = result.report("write").stats
    print(f"\n   Output: {stats['num_nodes']} nodes, {stats['num_geometries']} geometries")
    print(f"   Bounds: {stats['bbox'].min} to {stats['bbox'].max}")

    print("\n" + "=" * 40)
    print(f"Done! Output written to {output_path}")


if __name__ == "__main__":
    main()
