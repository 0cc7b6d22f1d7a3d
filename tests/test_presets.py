"""Tests for the built-in sphere scenes."""

import pytest


class TestTwoSphereScene:
    def test_contents(self):
        from pathtracer.scene.presets import GROUND_RADIUS, create_two_sphere_scene

        scene, camera = create_two_sphere_scene()
        assert scene.get_sphere_count() == 2
        assert scene.get_material_count() == 1
        assert {s.material_id for s in scene.spheres} == {0}
        assert scene.spheres[1].radius == GROUND_RADIUS
        assert scene.camera is camera

    def test_camera(self):
        from pathtracer.scene.presets import create_two_sphere_scene

        _scene, camera = create_two_sphere_scene(aspect_ratio=2.0)
        assert camera.look_from == (0.0, 0.0, 0.0)
        assert camera.look_at == (0.0, 0.0, -1.0)
        assert camera.vfov == 90.0
        assert camera.aspect_ratio == 2.0


class TestMaterialsScene:
    def test_contents(self):
        from pathtracer.scene.manager import MaterialType
        from pathtracer.scene.presets import create_materials_scene

        scene, _camera = create_materials_scene()
        assert scene.get_sphere_count() == 5
        assert scene.get_material_count() == 4

        types = [scene.material_type_of(i) for i in range(4)]
        assert types == [
            MaterialType.LAMBERTIAN,
            MaterialType.LAMBERTIAN,
            MaterialType.DIELECTRIC,
            MaterialType.METAL,
        ]

    def test_hollow_glass_sphere(self):
        """The left sphere is two glass shells, the inner one with negative radius."""
        from pathtracer.scene.presets import create_materials_scene

        scene, _camera = create_materials_scene()
        left = [s for s in scene.spheres if s.center == (-1.0, 0.0, -1.0)]

        assert sorted(s.radius for s in left) == [-0.45, 0.5]
        assert left[0].material_id == left[1].material_id

    def test_renders(self):
        """A tiny render of the scene produces a non-black image."""
        from pathtracer.camera.pinhole import setup_camera
        from pathtracer.core.renderer import RenderSettings, Renderer
        from pathtracer.scene.presets import create_materials_scene

        _scene, camera = create_materials_scene(aspect_ratio=2.0)
        setup_camera(camera)

        renderer = Renderer(
            RenderSettings(image_width=16, aspect_ratio=2.0, samples_per_pixel=2, max_depth=8)
        )
        renderer.render()
        pixels = renderer.get_image_uint8()
        assert pixels.shape == (8, 16, 3)
        assert pixels.max() > 0


class TestRandomScene:
    def test_same_seed_same_layout(self):
        from pathtracer.scene.presets import create_random_scene

        first = create_random_scene(seed=7)[0].to_dict()
        second = create_random_scene(seed=7)[0].to_dict()
        assert first == second

    def test_different_seed_different_layout(self):
        from pathtracer.scene.presets import create_random_scene

        first = create_random_scene(seed=1)[0].to_dict()
        second = create_random_scene(seed=2)[0].to_dict()
        assert first["spheres"] != second["spheres"]

    def test_layout(self):
        import numpy as np

        from pathtracer.scene.presets import RANDOM_SMALL_RADIUS, create_random_scene

        scene, camera = create_random_scene()
        radii = [s.radius for s in scene.spheres]

        # Ground first, three large spheres last
        assert radii[0] == 1000.0
        assert radii[-3:] == [1.0, 1.0, 1.0]
        assert all(r == RANDOM_SMALL_RADIUS for r in radii[1:-3])
        assert len(radii) > 4

        for sphere in scene.spheres[1:-3]:
            distance = np.linalg.norm(np.array(sphere.center) - [4.0, RANDOM_SMALL_RADIUS, 0.0])
            assert distance > 0.9

        assert camera.look_from == (13.0, 2.0, 3.0)
        assert camera.vfov == 20.0

    def test_material_params_in_range(self):
        from pathtracer.scene.manager import MaterialType
        from pathtracer.scene.presets import create_random_scene

        scene, _camera = create_random_scene(seed=3)
        for info in scene.materials:
            if info.material_type == MaterialType.METAL:
                assert all(0.5 <= c <= 1.0 for c in info.params["albedo"])
                assert 0.0 <= info.params["fuzz"] <= 0.5
            elif info.material_type == MaterialType.LAMBERTIAN:
                assert all(0.0 <= c <= 1.0 for c in info.params["albedo"])


class TestCreateScene:
    @pytest.mark.parametrize("name", ["two_spheres", "materials", "random"])
    def test_by_name(self, name):
        from pathtracer.scene.presets import create_scene

        scene, camera = create_scene(name, aspect_ratio=1.5)
        assert scene.get_sphere_count() > 0
        assert camera.aspect_ratio == 1.5
        assert scene.camera is camera

    def test_seed_is_forwarded(self):
        from pathtracer.scene.presets import create_random_scene, create_scene

        by_name = create_scene("random", seed=11)[0].to_dict()
        direct = create_random_scene(seed=11)[0].to_dict()
        assert by_name == direct

    def test_unknown_scene(self):
        from pathtracer.scene.presets import create_scene

        with pytest.raises(ValueError, match="Unknown scene"):
            create_scene("teapot")
