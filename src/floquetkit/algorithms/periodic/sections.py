"""Hyperplane Poincaré sections and their reduced coordinates.

Section ``i`` is the hyperplane ``<n_i, x - c_i> = 0``. A point on it is stored
in reduced coordinates by dropping the component ``k_i`` where ``|n_i|`` is
largest; embedding recovers that component from the hyperplane equation.
"""

import numpy as np


class HyperplaneSections:
    """A cyclic family of ``M`` hyperplane sections in ``R^N``.

    Parameters
    ----------
    normals : array_like, shape (M, N)
        Section normals.
    centers : array_like, shape (M, N)
        One point on each section.
    """

    def __init__(self, normals, centers) -> None:
        normals = np.atleast_2d(np.asarray(normals, dtype=float))
        centers = np.atleast_2d(np.asarray(centers, dtype=float))
        if normals.shape != centers.shape:
            raise ValueError(
                f"normals and centers must have the same shape, got {normals.shape} and {centers.shape}"
            )
        if normals.shape[1] < 2:
            raise ValueError("Sections need an ambient dimension of at least 2.")
        self.normals = normals
        self.centers = centers
        self._indices = np.argmax(np.abs(normals), axis=1)
        if np.any(normals[np.arange(len(normals)), self._indices] == 0.0):
            raise ValueError("Section normals must be non-zero.")

    @property
    def M(self) -> int:
        return self.normals.shape[0]

    @property
    def N(self) -> int:
        return self.normals.shape[1]

    def dropped_index(self, i: int) -> int:
        return int(self._indices[i])

    def event(self, x: np.ndarray, i: int) -> float:
        return float(np.dot(self.normals[i], x - self.centers[i]))

    def embed(self, x_bar: np.ndarray, i: int) -> np.ndarray:
        """Lift the reduced point ``x_bar`` onto section ``i``."""
        k = self._indices[i]
        n, c = self.normals[i], self.centers[i]
        x = np.insert(np.asarray(x_bar, dtype=float), k, c[k])
        x[k] -= np.dot(n, x - c) / n[k]
        return x

    def embed_tangent(self, dx_bar: np.ndarray, i: int) -> np.ndarray:
        """Lift a reduced tangent vector into the tangent space of section ``i``."""
        k = self._indices[i]
        n = self.normals[i]
        dx = np.insert(np.asarray(dx_bar, dtype=float), k, 0.0)
        dx[k] = -np.dot(n, dx) / n[k]
        return dx

    def retract(self, x: np.ndarray, i: int) -> np.ndarray:
        return np.delete(np.asarray(x, dtype=float), self._indices[i])

    def retract_tangent(self, dx: np.ndarray, i: int) -> np.ndarray:
        return np.delete(np.asarray(dx, dtype=float), self._indices[i])
