"""Three-node Geosynthetic Membrane Element (BAR3)

A straight quadratic line element in the (r, z) half plane. Strains are taken
in the element's inclined frame:

    ε_axial = cos(α) du_r/dξ + sin(α) du_z/dξ
    ε_hoop  = u_r / r

with α = atan2(Δz, Δr) between the end nodes. The axial row projects the
natural derivative dN/dξ; the Jacobian of the natural map is half the chord
length and only enters the integration weight.
"""

from typing import Tuple

import numpy as np

from fem_axisym.core.material import Material
from fem_axisym.elements.elements import (
    JACOBIAN_TOLERANCE,
    AxisymmetricElement,
    ElementFamily,
    ElementType,
    SingularJacobianError,
)


class BAR3(AxisymmetricElement):
    """3-node membrane element, nodes ordered (end, middle, end)

    0---1---2
    """

    name = "BAR3"
    element_type = ElementType.BAR3
    element_family = ElementFamily.MEMBRANE
    expected_node_count = 3
    n_strain = 2

    def _check_material(self, material: Material) -> None:
        if not material.geosynthetic:
            raise ValueError(
                f"{self.name} element requires a geosynthetic material, got '{material.name}'"
            )

    def geometry(self) -> Tuple[float, float]:
        """Chord length and inclination angle between the end nodes."""
        coords = self.node_coords
        dr, dz = coords[2] - coords[0]
        length = np.hypot(dr, dz)
        if length / 2 <= JACOBIAN_TOLERANCE:
            raise SingularJacobianError(
                f"{self.name} element {self.index} has zero length end nodes"
            )
        return length, np.arctan2(dz, dr)

    def _assemble_B(self, N: np.ndarray, dN: np.ndarray) -> Tuple[np.ndarray, float, float]:
        length, angle = self.geometry()
        det_J = length / 2
        r = N @ self.node_coords[:, 0]
        if r <= 0:
            raise SingularJacobianError(
                f"{self.name} element {self.index} has a non-positive radius r = {r:.3e}"
            )

        B = np.zeros((2, self.dofs_count))
        B[0, 0::2] = np.cos(angle) * dN[0]
        B[0, 1::2] = np.sin(angle) * dN[0]
        B[1, 0::2] = N / r
        return B, det_J, r

    def compute_E_matrix(self, modulus=None) -> np.ndarray:
        return self.material.E_matrix()

    def compute_B_matrix(self, point) -> np.ndarray:
        """Strain-displacement matrix (2 x 6) at a natural point (xi[, 0])."""
        point = np.atleast_1d(point)
        B, _, _ = self._assemble_B(self.shape.function_vec(point), self.shape.function_deriv(point))
        return B

    def _gauss_data(self, i: int) -> Tuple[np.ndarray, float, float]:
        shape = self.shape
        return self._assemble_B(shape.gauss_function_vec(i), shape.gauss_function_deriv(i))

    def gauss_B_matrix(self, i: int) -> np.ndarray:
        B, _, _ = self._gauss_data(i)
        return B

    def jacobian_det(self, i: int) -> float:
        length, _ = self.geometry()
        return length / 2

    @property
    def K(self) -> np.ndarray:
        """K = 2π Σ BᵀEB |J| r w"""
        _, weights = self.shape.integration_points
        E = self.compute_E_matrix()
        K = np.zeros((self.dofs_count, self.dofs_count))
        for i, w in enumerate(weights):
            B, det_J, r = self._gauss_data(i)
            K += (B.T @ E @ B) * det_J * r * w
        return 2 * np.pi * K

    def gauss_strain_and_stress(self, u_local: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        E = self.compute_E_matrix()
        strain = np.array([self.gauss_B_matrix(i) @ u_local for i in range(self.n_gauss)])
        return strain, strain @ E.T
