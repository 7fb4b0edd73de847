"""Quadrilateral Elements for Axisymmetric Solids (QUAD4, QUAD8)

Implements isoparametric quadrilateral elements for bodies of revolution,
integrated over the (r, z) half plane with the revolution factor 2πr.

Elements supported:
- QUAD4: 4-node bilinear quadrilateral
- QUAD8: 8-node serendipity quadrilateral

Formulation:
    Stiffness matrix: K = 2π ∫BᵀEB r dA
    Body forces: f = 2π ∫Nᵀb r dA
    Thermal load: f = 2π ∫BᵀEε₀ r dA

where:
    B: Strain-displacement matrix, rows [ε_rr, ε_θθ, ε_zz, γ_rz]
    E: Constitutive matrix (axisymmetric)
    N: Shape functions matrix
    b: Body force vector
    ε₀: Free thermal strain
"""

from typing import Sequence, Tuple

import numpy as np

from fem_axisym.core.material import Material
from fem_axisym.core.mesh import Node
from fem_axisym.elements.elements import (
    JACOBIAN_TOLERANCE,
    AxisymmetricElement,
    ElementFamily,
    ElementType,
    SingularJacobianError,
)


class QUAD(AxisymmetricElement):
    """Base class for axisymmetric quadrilateral elements

    Node numbering convention:

    QUAD4          QUAD8
    3---2         3---6---2
    |   |         |       |
    0---1         7       5
                  |       |
                  0---4---1
    """

    element_family = ElementFamily.SOLID
    n_strain = 4

    def __init__(
        self,
        index: int,
        node_ids: Sequence[int],
        nodes: Sequence[Node],
        material: Material,
    ):
        """Initialize quadrilateral element

        Parameters
        ----------
        index : int
            Element identity
        node_ids : Sequence[int]
            Global node IDs for connectivity
        nodes : Sequence[Node]
            Mesh node array
        material : Material
            Continuum material (isotropic or cross-anisotropic)
        """
        super().__init__(index, node_ids, nodes, material)

    def _compute_jacobian(self, dN: np.ndarray) -> Tuple[np.ndarray, float, np.ndarray]:
        """Compute Jacobian matrix components

        Parameters
        ----------
        dN : np.ndarray
            Natural derivatives of the shape functions (2 x n_nodes)

        Returns
        -------
        J : np.ndarray
            Jacobian matrix (2x2), J[i, j] = d x_j / d ξ_i
        det_J : float
            Jacobian determinant
        inv_J : np.ndarray
            Inverse of Jacobian matrix
        """
        J = dN @ self.node_coords
        det_J = np.linalg.det(J)
        if det_J <= JACOBIAN_TOLERANCE:
            raise SingularJacobianError(
                f"Singular or inverted Jacobian in {self.name} element {self.index}: "
                f"det J = {det_J:.3e}"
            )
        return J, det_J, np.linalg.inv(J)

    def _assemble_B(self, N: np.ndarray, dN: np.ndarray) -> Tuple[np.ndarray, float, float]:
        """B matrix, Jacobian determinant and radius from shape data at a point."""
        _, det_J, inv_J = self._compute_jacobian(dN)
        dN_dx = inv_J @ dN
        dN_dr, dN_dz = dN_dx[0], dN_dx[1]
        r = N @ self.node_coords[:, 0]
        if r <= 0:
            raise SingularJacobianError(
                f"{self.name} element {self.index} has a non-positive radius r = {r:.3e} "
                "at an evaluation point"
            )

        B = np.zeros((4, self.dofs_count))
        B[0, 0::2] = dN_dr  # ε_rr
        B[1, 0::2] = N / r  # ε_θθ
        B[2, 1::2] = dN_dz  # ε_zz
        B[3, 0::2] = dN_dz  # γ_rz
        B[3, 1::2] = dN_dr
        return B, det_J, r

    def compute_B_matrix(self, point) -> np.ndarray:
        """Compute strain-displacement matrix B

        Strain components:
        [ε_rr, ε_θθ, ε_zz, γ_rz]ᵀ = B * u

        Parameters
        ----------
        point : array_like
            Natural coordinates (xi, eta) in [-1, 1]

        Returns
        -------
        np.ndarray
            B matrix (4 x n_dofs)
        """
        B, _, _ = self._assemble_B(self.shape.function_vec(point), self.shape.function_deriv(point))
        return B

    def _gauss_data(self, i: int) -> Tuple[np.ndarray, float, float]:
        shape = self.shape
        return self._assemble_B(shape.gauss_function_vec(i), shape.gauss_function_deriv(i))

    def gauss_B_matrix(self, i: int) -> np.ndarray:
        B, _, _ = self._gauss_data(i)
        return B

    def jacobian_det(self, i: int) -> float:
        _, det_J, _ = self._compute_jacobian(self.shape.gauss_function_deriv(i))
        return det_J

    @property
    def K(self) -> np.ndarray:
        """Stiffness matrix

        Calculated using:
            K = 2π Σ BᵀEB |J| r w

        Returns
        -------
        np.ndarray
            Stiffness matrix (n_dofs x n_dofs)
        """
        _, weights = self.shape.integration_points
        K = np.zeros((self.dofs_count, self.dofs_count))

        for i, w in enumerate(weights):
            B, det_J, r = self._gauss_data(i)
            E = self.gauss_E_matrix(i)
            K += (B.T @ E @ B) * det_J * r * w

        return 2 * np.pi * K

    def body_load(self) -> np.ndarray:
        """Body force vector from the material body force [b_r, b_z]

        Returns
        -------
        np.ndarray
            Force vector (n_dofs,)
        """
        body_force = self.material.body_force
        f = np.zeros(self.dofs_count)
        if not np.any(body_force):
            return f

        _, weights = self.shape.integration_points
        for i, w in enumerate(weights):
            N_mat = self.shape.gauss_function_mat(i)
            _, det_J, r = self._gauss_data(i)
            f += (N_mat.T @ body_force) * det_J * r * w

        return 2 * np.pi * f

    def thermal_load(self) -> np.ndarray:
        """Equivalent nodal load of the material's free thermal strain"""
        thermal_strain = self.material.thermal_strain
        f = np.zeros(self.dofs_count)
        if not np.any(thermal_strain):
            return f

        _, weights = self.shape.integration_points
        for i, w in enumerate(weights):
            B, det_J, r = self._gauss_data(i)
            E = self.gauss_E_matrix(i)
            f += (B.T @ E @ thermal_strain) * det_J * r * w

        return 2 * np.pi * f

    def edge_load(self, edge: int, traction: Sequence[float]) -> np.ndarray:
        """Equivalent nodal load of a uniform traction on one edge

        Parameters
        ----------
        edge : int
            Local edge index (see ``Shape.edge_list``)
        traction : Sequence[float]
            Traction per unit area [t_r, t_z] in global axes

        Returns
        -------
        np.ndarray
            Force vector (n_dofs,)
        """
        shape = self.shape
        if not 0 <= edge < shape.n_edges:
            raise IndexError(f"Edge {edge} out of range for {self.name} ({shape.n_edges} edges)")
        traction = np.asarray(traction, dtype=float).reshape(2)
        edge_nodes = shape.edge_list[edge]
        edge_coords = self.node_coords[list(edge_nodes)]

        f_edge = np.zeros(2 * len(edge_nodes))
        _, weights = shape.edge_integration_points
        for i, w in enumerate(weights):
            N = shape.edge_gauss_function_vec(i)
            dx_ds = shape.edge_gauss_function_deriv(i) @ edge_coords
            r = N @ edge_coords[:, 0]
            N_mat = shape.edge_gauss_function_mat(i)
            f_edge += (N_mat.T @ traction) * np.linalg.norm(dx_ds) * r * w

        f = np.zeros(self.dofs_count)
        for a, local in enumerate(edge_nodes):
            f[2 * local: 2 * local + 2] += f_edge[2 * a: 2 * a + 2]
        return 2 * np.pi * f

    def gauss_strain_and_stress(self, u_local: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Strain and stress at every Gauss point

        Parameters
        ----------
        u_local : np.ndarray
            Element displacement vector (n_dofs,)

        Returns
        -------
        strain, stress : np.ndarray
            Arrays of shape (n_gauss x 4); stress is E(ε - ε₀)
        """
        strain = np.zeros((self.n_gauss, self.n_strain))
        stress = np.zeros((self.n_gauss, self.n_strain))
        thermal_strain = self.material.thermal_strain
        for i in range(self.n_gauss):
            strain[i] = self.gauss_B_matrix(i) @ u_local
            stress[i] = self.gauss_E_matrix(i) @ (strain[i] - thermal_strain)
        return strain, stress


class QUAD4(QUAD):
    """4-node Bilinear Quadrilateral Element

    Shape functions:
    N₁ = ¼(1-ξ)(1-η)
    N₂ = ¼(1+ξ)(1-η)
    N₃ = ¼(1+ξ)(1+η)
    N₄ = ¼(1-ξ)(1+η)

    Integrated with 2x2 Gauss points.
    """

    name = "QUAD4"
    element_type = ElementType.QUAD4
    expected_node_count = 4


class QUAD8(QUAD):
    """8-node Serendipity Quadrilateral Element

    Corner nodes first, then midside nodes on edges 0-1, 1-2, 2-3 and 3-0.
    Integrated with 3x3 Gauss points.
    """

    name = "QUAD8"
    element_type = ElementType.QUAD8
    expected_node_count = 8
