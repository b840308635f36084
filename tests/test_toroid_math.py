import math
import unittest

import numpy as np

from toroid_math import Axis, CompositeRotation, Rotation, Vector3, project


def sample_vectors(count=50, seed=7):
    rng = np.random.default_rng(seed)
    return [Vector3(*row) for row in rng.uniform(-10.0, 10.0, size=(count, 3))]


class VectorTests(unittest.TestCase):
    def test_dot_product(self):
        self.assertEqual(Vector3(1.0, 2.0, 3.0).dot(Vector3(4.0, -5.0, 6.0)), 12.0)

    def test_dot_is_symmetric(self):
        vectors = sample_vectors()
        for a, b in zip(vectors, reversed(vectors)):
            self.assertEqual(a.dot(b), b.dot(a))

    def test_length(self):
        self.assertAlmostEqual(Vector3(3.0, 4.0, 0.0).length(), 5.0)

    def test_equal_vectors_hash_alike(self):
        self.assertEqual(hash(Vector3(1, 2, 3)), hash(Vector3(1.0, 2.0, 3.0)))
        self.assertEqual(len({Vector3(1, 2, 3), Vector3(1.0, 2.0, 3.0), Vector3(3, 2, 1)}), 2)
        self.assertEqual({Vector3(0, 1, 0): "up"}[Vector3(0.0, 1.0, 0.0)], "up")

    def test_as_array(self):
        array = Vector3(1.0, -2.0, 0.5).as_array()
        self.assertEqual(array.dtype, np.float32)
        self.assertEqual(array.tolist(), [1.0, -2.0, 0.5])


class RotationTests(unittest.TestCase):
    def test_zero_angle_is_identity(self):
        for axis in Axis:
            rotation = Rotation(0.0, axis)
            for point in sample_vectors():
                self.assertEqual(rotation.apply(point), point)

    def test_rotation_preserves_its_axis_component(self):
        for angle in (0.3, -1.2, 2 * math.pi, 42.0):
            for point in sample_vectors():
                self.assertEqual(Rotation(angle, Axis.X).apply(point).x, point.x)
                self.assertEqual(Rotation(angle, Axis.Y).apply(point).y, point.y)
                self.assertEqual(Rotation(angle, Axis.Z).apply(point).z, point.z)

    def test_round_trip(self):
        for axis in Axis:
            for angle in (0.1, 1.7, -3.0, 12.5):
                for point in sample_vectors(10):
                    back = Rotation(-angle, axis).apply(Rotation(angle, axis).apply(point))
                    self.assertAlmostEqual(back.x, point.x, places=9)
                    self.assertAlmostEqual(back.y, point.y, places=9)
                    self.assertAlmostEqual(back.z, point.z, places=9)

    def test_quarter_turns(self):
        quarter = math.pi / 2
        rotated = Rotation(quarter, Axis.Z).apply(Vector3(1.0, 0.0, 0.0))
        self.assertAlmostEqual(rotated.x, 0.0)
        self.assertAlmostEqual(rotated.y, 1.0)

        rotated = Rotation(quarter, Axis.X).apply(Vector3(0.0, 1.0, 0.0))
        self.assertAlmostEqual(rotated.y, 0.0)
        self.assertAlmostEqual(rotated.z, 1.0)

        rotated = Rotation(quarter, Axis.Y).apply(Vector3(1.0, 0.0, 0.0))
        self.assertAlmostEqual(rotated.x, 0.0)
        self.assertAlmostEqual(rotated.z, -1.0)

    def test_does_not_mutate_input(self):
        point = Vector3(1.0, 2.0, 3.0)
        Rotation(1.0, Axis.Y).apply(point)
        self.assertEqual(point, Vector3(1.0, 2.0, 3.0))

    def test_matrix_matches_apply(self):
        points = sample_vectors(20)
        array = np.array([tuple(p) for p in points])
        for axis in Axis:
            rotation = Rotation(0.8, axis)
            rotated = rotation.apply_array(array)
            for row, point in zip(rotated, points):
                np.testing.assert_allclose(row, tuple(rotation.apply(point)), atol=1e-9)

    def test_apply_array_keeps_float32(self):
        array = np.ones((4, 3), dtype=np.float32)
        self.assertEqual(Rotation(0.5, Axis.X).apply_array(array).dtype, np.float32)

    def test_unknown_axis_rejected(self):
        with self.assertRaises(ValueError):
            Rotation(1.0, "x")


class CompositeRotationTests(unittest.TestCase):
    def test_from_angles_order_is_y_x_z(self):
        composite = CompositeRotation.from_angles(0.1, 0.2, 0.3)
        self.assertEqual([r.axis for r in composite], [Axis.Y, Axis.X, Axis.Z])
        self.assertEqual([r.angle for r in composite], [0.2, 0.1, 0.3])

    def test_apply_matches_nested_application(self):
        rx, ry, rz = Rotation(0.4, Axis.X), Rotation(1.1, Axis.Y), Rotation(-0.7, Axis.Z)
        composite = CompositeRotation.from_angles(0.4, 1.1, -0.7)
        for point in sample_vectors(10):
            self.assertEqual(composite.apply(point), rz.apply(rx.apply(ry.apply(point))))

    def test_order_matters(self):
        point = Vector3(1.0, 2.0, 3.0)
        a = CompositeRotation([Rotation(0.5, Axis.X), Rotation(0.5, Axis.Y)]).apply(point)
        b = CompositeRotation([Rotation(0.5, Axis.Y), Rotation(0.5, Axis.X)]).apply(point)
        self.assertNotAlmostEqual(a.x, b.x)

    def test_matrix_matches_apply(self):
        composite = CompositeRotation.from_angles(2.1, -0.3, 0.9)
        points = sample_vectors(20)
        rotated = composite.apply_array(np.array([tuple(p) for p in points]))
        for row, point in zip(rotated, points):
            np.testing.assert_allclose(row, tuple(composite.apply(point)), atol=1e-9)

    def test_empty_composite_is_identity(self):
        composite = CompositeRotation([])
        self.assertEqual(len(composite), 0)
        np.testing.assert_array_equal(composite.matrix(), np.eye(3))


class ProjectionTests(unittest.TestCase):
    def test_perspective_divide(self):
        projected = project(Vector3(4.0, -2.0, 3.0), 5.0)
        self.assertEqual(projected, Vector3(2.0, -1.0, 3.0))

    def test_degenerate_denominator(self):
        self.assertIsNone(project(Vector3(1.0, 1.0, 5.0), 5.0))


if __name__ == "__main__":
    unittest.main()
