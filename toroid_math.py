import math
from enum import Enum

import numpy as np


class Vector3:
    def __init__(self, x, y, z):
        """
        Initialise a 3-component vector.

        Used both as a position and as a direction. Unit length is
        not enforced, callers that shade with it must pass unit normals.

        Args:
            x, y, z (float):
                Coordinates.
        """
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)


    def dot(self, other):
        """
        Return the scalar dot product with ``other``.
        """
        return self.x * other.x + self.y * other.y + self.z * other.z


    def length(self):
        """
        Return the Euclidean length.

        Returns:
            float
        """
        return math.sqrt(self.dot(self))


    def as_array(self):
        """
        Convert to a numpy row for the vectorised pipeline.

        Returns:
            np.ndarray of shape (3,) and dtype float32
        """
        return np.array([self.x, self.y, self.z], dtype=np.float32)


    def __iter__(self):
        return iter((self.x, self.y, self.z))


    def __eq__(self, other):
        if not isinstance(other, Vector3):
            return NotImplemented
        return (self.x, self.y, self.z) == (other.x, other.y, other.z)


    def __hash__(self):
        return hash((self.x, self.y, self.z))


    def __repr__(self):
        return f"Vector3({self.x!r}, {self.y!r}, {self.z!r})"



class Axis(Enum):
    X = "x"
    Y = "y"
    Z = "z"



class Rotation:
    def __init__(self, angle, axis):
        """
        Describe a rotation about one of the principal axes.

        Args:
            angle (float):
                Angle in radians. Any real value, it is not normalised.
            axis (Axis):
                Principal axis to rotate about.

        Raises:
            ValueError:
                If ``axis`` is not an ``Axis`` member.
        """
        if not isinstance(axis, Axis):
            raise ValueError(f"Unknown rotation axis: {axis!r}")
        self.angle = float(angle)
        self.axis = axis


    def apply(self, point):
        """
        Rotate a single vector with the right-handed rotation formula.

        Args:
            point (Vector3):
                Vector to rotate.

        Returns:
            Vector3:
                New rotated vector, ``point`` is left untouched.
        """
        cos = math.cos(self.angle)
        sin = math.sin(self.angle)
        x, y, z = point

        if self.axis is Axis.X:
            return Vector3(x, y*cos - z*sin, y*sin + z*cos)
        elif self.axis is Axis.Y:
            return Vector3(x*cos + z*sin, y, -x*sin + z*cos)
        else:
            return Vector3(x*cos - y*sin, x*sin + y*cos, z)


    def matrix(self):
        """
        Return the 3x3 rotation matrix, same convention as ``apply``.

        Returns:
            np.ndarray of shape (3, 3)
        """
        c = np.cos(self.angle)
        s = np.sin(self.angle)

        if self.axis is Axis.X:
            return np.array([
                [1, 0, 0],
                [0, c, -s],
                [0, s,  c]
            ])
        elif self.axis is Axis.Y:
            return np.array([
                [ c, 0, s],
                [ 0, 1, 0],
                [-s, 0, c]
            ])
        else:
            return np.array([
                [c, -s, 0],
                [s,  c, 0],
                [0,  0, 1]
            ])


    def apply_array(self, vectors):
        """
        Rotate an array of row vectors.

        Args:
            vectors (np.ndarray of shape (N, 3)):
                Vectors to rotate.

        Returns:
            np.ndarray of shape (N, 3):
                Rotated vectors, same dtype as the input.
        """
        return _apply_matrix(self.matrix(), vectors)


    def __repr__(self):
        return f"Rotation({self.angle!r}, {self.axis})"



class CompositeRotation:
    def __init__(self, rotations):
        """
        Ordered sequence of elementary rotations.

        The first rotation is applied first, so ``[a, b]`` maps a point
        ``p`` to ``b.apply(a.apply(p))``.

        Args:
            rotations (iterable of Rotation):
                Rotations in application order.
        """
        self.rotations = tuple(rotations)


    @classmethod
    def from_angles(cls, angle_x, angle_y, angle_z):
        """
        Build the per-frame rotation: Y, then X, then Z.
        """
        return cls([
            Rotation(angle_y, Axis.Y),
            Rotation(angle_x, Axis.X),
            Rotation(angle_z, Axis.Z),
        ])


    def apply(self, point):
        """
        Apply every rotation in order to a single vector.

        Args:
            point (Vector3):
                Vector to rotate.

        Returns:
            Vector3:
                New rotated vector.
        """
        for rotation in self.rotations:
            point = rotation.apply(point)
        return point


    def matrix(self):
        """
        Collapse the sequence into a single 3x3 matrix.

        Later rotations multiply from the left.

        Returns:
            np.ndarray of shape (3, 3)
        """
        combined = np.eye(3)
        for rotation in self.rotations:
            combined = rotation.matrix() @ combined
        return combined


    def apply_array(self, vectors):
        """
        Rotate an array of row vectors with the collapsed matrix.

        Args:
            vectors (np.ndarray of shape (N, 3)):
                Vectors to rotate.

        Returns:
            np.ndarray of shape (N, 3):
                Rotated vectors, same dtype as the input.
        """
        return _apply_matrix(self.matrix(), vectors)


    def __len__(self):
        return len(self.rotations)


    def __iter__(self):
        return iter(self.rotations)



def _apply_matrix(matrix, vectors):
    vectors = np.asarray(vectors)
    if vectors.dtype != np.float32:
        vectors = vectors.astype(float)
    return vectors @ matrix.astype(vectors.dtype).T


def project(point, distance):
    """
    Perspective-divide a point for a viewer at ``distance`` on the z axis.

    Args:
        point (Vector3):
            Point to project.
        distance (float):
            Viewer distance.

    Returns:
        Vector3 | None:
            ``(x/(distance - z), y/(distance - z), z)``, or None when the
            denominator is within 1e-9 of zero.
    """
    denominator = distance - point.z
    if abs(denominator) < 1e-9:
        return None
    return Vector3(point.x / denominator, point.y / denominator, point.z)
