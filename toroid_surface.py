import logging

import numpy as np

from toroid_math import Vector3

logger = logging.getLogger(__name__)

SAMPLE_STEPS = 628
SAMPLE_DIVISOR = 10.0


class ToroidSurface:
    def __init__(self, points, normals):
        """
        Immutable set of surface samples.

        Sample ``i`` is the pair ``(points[i], normals[i])``. The arrays are
        marked read-only, renderers rotate copies of them every frame.

        Args:
            points (np.ndarray of shape (N, 3)):
                Surface positions.
            normals (np.ndarray of shape (N, 3)):
                Unit surface normals.

        Raises:
            ValueError:
                If the arrays are not (N, 3) or differ in length.
        """
        points = np.array(points, dtype=np.float32)
        normals = np.array(normals, dtype=np.float32)

        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Points must have shape (N, 3), got {points.shape}")
        if normals.shape != points.shape:
            raise ValueError(f"Normals shape {normals.shape} does not match points shape {points.shape}")

        points.flags.writeable = False
        normals.flags.writeable = False
        self.points = points
        self.normals = normals


    def __len__(self):
        return len(self.points)


    def __getitem__(self, index):
        point = self.points[index]
        normal = self.normals[index]
        return Vector3(*point), Vector3(*normal)


    def __iter__(self):
        for index in range(len(self)):
            yield self[index]



def generate_toroid(outer_radius, inner_radius, steps=SAMPLE_STEPS, divisor=SAMPLE_DIVISOR):
    """
    Sample a toroid surface on a fixed angular grid.

    Both angles run over ``range(steps) / divisor``. With the defaults that is
    0.0 to 62.7 radians, roughly ten turns, which fixes the point density the
    animation is tuned for. Theta walks the tube circle and is the outer loop,
    phi sweeps the tube around the Y axis and is the inner loop.

    Args:
        outer_radius (float):
            Distance from the toroid centre to the tube centre.
        inner_radius (float):
            Radius of the tube.
        steps (int):
            Number of samples per angle.
        divisor (float):
            Converts a step index into radians.

    Returns:
        ToroidSurface:
            ``steps * steps`` samples in (theta, phi) order.

    Raises:
        ValueError:
            If a radius is not positive or ``steps`` is less than 1.
    """
    if outer_radius <= 0 or inner_radius <= 0:
        raise ValueError(f"Toroid radii must be positive, got {outer_radius} and {inner_radius}")
    if steps < 1:
        raise ValueError(f"Toroid needs at least one step per angle, got {steps}")

    angles = np.arange(steps, dtype=np.float32) / np.float32(divisor)
    TH, PH = np.meshgrid(angles, angles, indexing="ij")

    cos_th, sin_th = np.cos(TH), np.sin(TH)
    cos_ph, sin_ph = np.cos(PH), np.sin(PH)

    # Circle in the XY plane, swept about Y: (x, y, 0) -> (x cos, y, -x sin)
    ring_x = np.float32(outer_radius) + np.float32(inner_radius) * cos_th
    ring_y = np.float32(inner_radius) * sin_th

    points = np.stack([
        (ring_x * cos_ph).ravel(),
        ring_y.ravel(),
        (-ring_x * sin_ph).ravel()
    ], axis=1)
    normals = np.stack([
        (cos_th * cos_ph).ravel(),
        sin_th.ravel(),
        (-cos_th * sin_ph).ravel()
    ], axis=1)

    surface = ToroidSurface(points, normals)
    logger.debug("Generated toroid R=%s r=%s with %d samples", outer_radius, inner_radius, len(surface))
    return surface
