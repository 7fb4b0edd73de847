"""Reference-element interpolation and quadrature for axisymmetric elements.

A Shape describes one element topology in natural coordinates: its nodes, its
Gauss points and weights, its edges and the edge quadrature. Shape-function
values and derivatives at the Shape's own Gauss points are evaluated once at
construction and served from that cache; evaluation at an arbitrary point goes
through the uncached path.

Node numbering convention:

    Q4             Q8              B3
    3---2          3---6---2       0---1---2
    |   |          |       |
    0---1          7       5
                   |       |
                   0---4---1

Edges are listed counter-clockwise as (start, [mid,] end).

One Shape instance is shared by every element of the same topology, see
``get_shape``.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Sequence, Tuple

import numpy as np


def gauss_legendre(n_points: int) -> Tuple[np.ndarray, np.ndarray]:
    """1-D Gauss-Legendre points and weights on [-1, 1]."""
    if n_points not in (1, 2, 3):
        raise ValueError(
            f"Unsupported number of Gauss points: {n_points}. 'n_points' must be 1, 2, or 3."
        )
    return np.polynomial.legendre.leggauss(n_points)


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


def _lagrange_basis(abscissae: np.ndarray, index: int, x: float) -> float:
    value = 1.0
    for j, xj in enumerate(abscissae):
        if j != index:
            value *= (x - xj) / (abscissae[index] - xj)
    return value


class Shape(ABC):
    """
    Base class for reference-element shapes.

    Parameters
    ----------
    node_coords : array_like
        Natural coordinates of the nodes (n_nodes x 2).
    gauss_points : array_like
        Natural coordinates of the Gauss points (n_gauss x 2).
    gauss_weights : array_like
        Gauss weights (n_gauss,).
    edge_list : Sequence[Sequence[int]]
        Local node indices of each edge, ordered (start, [mid,] end).
    edge_gauss_points, edge_gauss_weights : array_like
        1-D edge quadrature on [-1, 1].
    """

    tag: str = ""

    def __init__(
        self,
        node_coords,
        gauss_points,
        gauss_weights,
        edge_list: Sequence[Sequence[int]],
        edge_gauss_points,
        edge_gauss_weights,
    ):
        self.node_coords = _readonly(node_coords)
        self.gauss_points = _readonly(gauss_points)
        self.gauss_weights = _readonly(gauss_weights)
        self.edge_list = tuple(tuple(edge) for edge in edge_list)
        self.edge_gauss_points = _readonly(edge_gauss_points)
        self.edge_gauss_weights = _readonly(edge_gauss_weights)

        self.n_nodes = len(self.node_coords)
        self.n_gauss = len(self.gauss_points)
        self.n_edges = len(self.edge_list)
        self.n_edge_nodes = len(self.edge_list[0])
        self.n_edge_gauss = len(self.edge_gauss_points)

        self._cache_shape()

    def __repr__(self):
        return f"<{self.__class__.__name__} nodes={self.n_nodes} gauss={self.n_gauss}>"

    def _cache_shape(self) -> None:
        self._N = tuple(_readonly(self.function_vec(p)) for p in self.gauss_points)
        self._dN = tuple(_readonly(self.function_deriv(p)) for p in self.gauss_points)
        self._N_mat = tuple(_readonly(self.function_mat(p)) for p in self.gauss_points)
        self._edge_N = tuple(_readonly(self.edge_function_vec(s)) for s in self.edge_gauss_points)
        self._edge_dN = tuple(
            _readonly(self.edge_function_deriv(s)) for s in self.edge_gauss_points
        )
        self._edge_N_mat = tuple(
            _readonly(self.edge_function_mat(s)) for s in self.edge_gauss_points
        )
        self._extrapolation = _readonly(self._build_extrapolation())

    # ------------------------------------------------------------------
    # Area functions (uncached path)
    # ------------------------------------------------------------------

    @abstractmethod
    def function_vec(self, point) -> np.ndarray:
        """Shape function values N at a natural point (n_nodes,)."""

    @abstractmethod
    def function_deriv(self, point) -> np.ndarray:
        """Natural derivatives, one row per natural dimension (n_dim x n_nodes)."""

    def function_mat(self, point) -> np.ndarray:
        """Interleaved 2-DOF form of N (2 x 2*n_nodes)."""
        N = self.function_vec(point)
        N_mat = np.zeros((2, 2 * self.n_nodes))
        N_mat[0, 0::2] = N
        N_mat[1, 1::2] = N
        return N_mat

    # ------------------------------------------------------------------
    # Edge functions (1-D Lagrange on the edge nodes)
    # ------------------------------------------------------------------

    def edge_function_vec(self, s: float) -> np.ndarray:
        if self.n_edge_nodes == 2:
            return np.array([(1 - s) / 2, (1 + s) / 2])
        return np.array([-s * (1 - s) / 2, 1 - s * s, s * (1 + s) / 2])

    def edge_function_deriv(self, s: float) -> np.ndarray:
        if self.n_edge_nodes == 2:
            return np.array([-0.5, 0.5])
        return np.array([(2 * s - 1) / 2, -2 * s, (2 * s + 1) / 2])

    def edge_function_mat(self, s: float) -> np.ndarray:
        N = self.edge_function_vec(s)
        N_mat = np.zeros((2, 2 * self.n_edge_nodes))
        N_mat[0, 0::2] = N
        N_mat[1, 1::2] = N
        return N_mat

    # ------------------------------------------------------------------
    # Cached values at Gauss points
    # ------------------------------------------------------------------

    def _check_gauss_index(self, i: int, count: int) -> None:
        if not 0 <= i < count:
            raise IndexError(f"Gauss point index {i} out of range for {self.tag} ({count} points)")

    def gauss_function_vec(self, i: int) -> np.ndarray:
        self._check_gauss_index(i, self.n_gauss)
        return self._N[i]

    def gauss_function_deriv(self, i: int) -> np.ndarray:
        self._check_gauss_index(i, self.n_gauss)
        return self._dN[i]

    def gauss_function_mat(self, i: int) -> np.ndarray:
        self._check_gauss_index(i, self.n_gauss)
        return self._N_mat[i]

    def edge_gauss_function_vec(self, i: int) -> np.ndarray:
        self._check_gauss_index(i, self.n_edge_gauss)
        return self._edge_N[i]

    def edge_gauss_function_deriv(self, i: int) -> np.ndarray:
        self._check_gauss_index(i, self.n_edge_gauss)
        return self._edge_dN[i]

    def edge_gauss_function_mat(self, i: int) -> np.ndarray:
        self._check_gauss_index(i, self.n_edge_gauss)
        return self._edge_N_mat[i]

    @property
    def integration_points(self) -> Tuple[np.ndarray, np.ndarray]:
        """Gauss points (n_gauss x 2) and weights (n_gauss,)."""
        return self.gauss_points, self.gauss_weights

    @property
    def edge_integration_points(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.edge_gauss_points, self.edge_gauss_weights

    # ------------------------------------------------------------------
    # Gauss point to node extrapolation
    # ------------------------------------------------------------------

    def _build_extrapolation(self) -> np.ndarray:
        # Lagrange interpolant through the Gauss grid (tensor product per natural
        # axis) evaluated at the node natural coordinates.
        ex_mat = np.ones((self.n_nodes, self.n_gauss))
        for axis in range(self.gauss_points.shape[1]):
            abscissae = np.unique(self.gauss_points[:, axis])
            position = np.searchsorted(abscissae, self.gauss_points[:, axis])
            for a in range(self.n_nodes):
                x = self.node_coords[a, axis]
                for k in range(self.n_gauss):
                    ex_mat[a, k] *= _lagrange_basis(abscissae, position[k], x)
        return ex_mat

    @property
    def extrapolation_matrix(self) -> np.ndarray:
        """Maps Gauss-point values to nodal values (n_nodes x n_gauss)."""
        return self._extrapolation


class ShapeQ4(Shape):
    """4-node bilinear quadrilateral with 2x2 Gauss integration."""

    tag = "Q4"

    def __init__(self):
        g, w = gauss_legendre(2)
        super().__init__(
            node_coords=[(-1, -1), (1, -1), (1, 1), (-1, 1)],
            gauss_points=[(g[0], g[0]), (g[1], g[0]), (g[1], g[1]), (g[0], g[1])],
            gauss_weights=[w[0] * w[0], w[1] * w[0], w[1] * w[1], w[0] * w[1]],
            edge_list=[(0, 1), (1, 2), (2, 3), (3, 0)],
            edge_gauss_points=g,
            edge_gauss_weights=w,
        )

    def function_vec(self, point) -> np.ndarray:
        """
        N0 = 0.25(1 - xi)(1 - eta)
        N1 = 0.25(1 + xi)(1 - eta)
        N2 = 0.25(1 + xi)(1 + eta)
        N3 = 0.25(1 - xi)(1 + eta)
        """
        xi, eta = point[0], point[1]
        return 0.25 * np.array([
            (1 - xi) * (1 - eta),
            (1 + xi) * (1 - eta),
            (1 + xi) * (1 + eta),
            (1 - xi) * (1 + eta),
        ])

    def function_deriv(self, point) -> np.ndarray:
        xi, eta = point[0], point[1]
        return 0.25 * np.array([
            [-(1 - eta), (1 - eta), (1 + eta), -(1 + eta)],
            [-(1 - xi), -(1 + xi), (1 + xi), (1 - xi)],
        ])


class ShapeQ8(Shape):
    """8-node serendipity quadrilateral with 3x3 Gauss integration."""

    tag = "Q8"

    _corners = np.array([(-1, -1), (1, -1), (1, 1), (-1, 1)], dtype=float)
    _midsides = np.array([(0, -1), (1, 0), (0, 1), (-1, 0)], dtype=float)

    def __init__(self):
        g, w = gauss_legendre(3)
        points = [(g[i], g[j]) for j in range(3) for i in range(3)]
        weights = [w[i] * w[j] for j in range(3) for i in range(3)]
        super().__init__(
            node_coords=np.vstack([self._corners, self._midsides]),
            gauss_points=points,
            gauss_weights=weights,
            edge_list=[(0, 4, 1), (1, 5, 2), (2, 6, 3), (3, 7, 0)],
            edge_gauss_points=g,
            edge_gauss_weights=w,
        )

    def function_vec(self, point) -> np.ndarray:
        xi, eta = point[0], point[1]
        xc, ec = self._corners[:, 0], self._corners[:, 1]
        corner = 0.25 * (1 + xi * xc) * (1 + eta * ec) * (xi * xc + eta * ec - 1)
        mid = np.array([
            0.5 * (1 - xi**2) * (1 - eta),
            0.5 * (1 + xi) * (1 - eta**2),
            0.5 * (1 - xi**2) * (1 + eta),
            0.5 * (1 - xi) * (1 - eta**2),
        ])
        return np.concatenate([corner, mid])

    def function_deriv(self, point) -> np.ndarray:
        xi, eta = point[0], point[1]
        xc, ec = self._corners[:, 0], self._corners[:, 1]
        corner_dxi = 0.25 * xc * (1 + eta * ec) * (2 * xi * xc + eta * ec)
        corner_deta = 0.25 * ec * (1 + xi * xc) * (2 * eta * ec + xi * xc)
        mid_dxi = np.array([
            -xi * (1 - eta),
            0.5 * (1 - eta**2),
            -xi * (1 + eta),
            -0.5 * (1 - eta**2),
        ])
        mid_deta = np.array([
            -0.5 * (1 - xi**2),
            -(1 + xi) * eta,
            0.5 * (1 - xi**2),
            -(1 - xi) * eta,
        ])
        return np.vstack([
            np.concatenate([corner_dxi, mid_dxi]),
            np.concatenate([corner_deta, mid_deta]),
        ])


class ShapeB3(Shape):
    """3-node quadratic line (bar/membrane) with 3-point Gauss integration.

    Points keep a second (eta) coordinate fixed at zero so they share the
    signature of the area shapes.
    """

    tag = "B3"

    def __init__(self):
        g, w = gauss_legendre(3)
        super().__init__(
            node_coords=[(-1, 0), (0, 0), (1, 0)],
            gauss_points=[(x, 0.0) for x in g],
            gauss_weights=w,
            edge_list=[(0, 1, 2)],
            edge_gauss_points=g,
            edge_gauss_weights=w,
        )

    def function_vec(self, point) -> np.ndarray:
        xi = point[0]
        return np.array([xi * (xi - 1) / 2, 1 - xi * xi, xi * (xi + 1) / 2])

    def function_deriv(self, point) -> np.ndarray:
        xi = point[0]
        return np.array([[(2 * xi - 1) / 2, -2 * xi, (2 * xi + 1) / 2]])


_SHAPE_CLASSES = {cls.tag: cls for cls in (ShapeQ4, ShapeQ8, ShapeB3)}


@lru_cache(maxsize=None)
def get_shape(tag: str) -> Shape:
    """Return the shared Shape instance for an element topology tag."""
    try:
        shape_class = _SHAPE_CLASSES[tag]
    except KeyError:
        raise KeyError(f"Unknown shape tag '{tag}'. Valid: {sorted(_SHAPE_CLASSES)}") from None
    return shape_class()
