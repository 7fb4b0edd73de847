"""Six-node Zero-thickness Interface Element (INTERFACE6)

Joins two coincident 3-node faces: nodes 0-2 form the front face and nodes 3-5
the back face, node k paired with node k + 3. The element works on the relative
displacement of each pair

    Δu = u_back - u_front = B u

and the springs ks (radial component) and kn (axial component) of the
geosynthetic material. The revolved surface is lumped onto the three pairs
with Simpson-like weights

    c0 = πL/3 (r̄ - L/2 cos α)
    c1 = 4πL/3 r̄
    c2 = πL/3 (r̄ + L/2 cos α)

so E is already integrated and K = BᵀEB.
"""

from typing import Optional, Tuple

import numpy as np

from fem_axisym.core.material import Material
from fem_axisym.elements.elements import AxisymmetricElement, ElementFamily, ElementType
from fem_axisym.elements.shapes import Shape


def _difference_operator() -> np.ndarray:
    B = np.zeros((6, 12))
    for n in range(6):
        B[n, n] = -1.0
        B[n, n + 6] = 1.0
    B.flags.writeable = False
    return B


class INTERFACE6(AxisymmetricElement):
    """6-node interface element

    0---1---2   front face
    3---4---5   back face
    """

    name = "INTERFACE6"
    element_type = ElementType.INTERFACE6
    element_family = ElementFamily.INTERFACE
    expected_node_count = 6
    n_strain = 6

    _B = _difference_operator()

    def _check_material(self, material: Material) -> None:
        if not material.geosynthetic:
            raise ValueError(
                f"{self.name} element requires a geosynthetic material, got '{material.name}'"
            )

    @property
    def shape(self) -> Optional[Shape]:
        """No isoparametric map is needed."""
        return None

    @property
    def n_gauss(self) -> int:
        return 0

    def compute_B_matrix(self, point=None) -> np.ndarray:
        """Constant difference operator (6 x 12), independent of ``point``."""
        return self._B

    def gauss_B_matrix(self, i: int) -> np.ndarray:
        # Placeholder; the operator does not vary by Gauss point.
        return np.zeros((2, 2))

    def geometry(self) -> Tuple[float, float, float]:
        """Face length, inclination angle and mean radius of the front face."""
        coords = self.node_coords[:3]
        dr, dz = coords[2] - coords[0]
        return np.hypot(dr, dz), np.arctan2(dz, dr), coords[:, 0].mean()

    def lumping_coefficients(self) -> np.ndarray:
        length, angle, r_mean = self.geometry()
        half_cos = length / 2 * np.cos(angle)
        return np.array([
            np.pi * length / 3 * (r_mean - half_cos),
            4 * np.pi * length / 3 * r_mean,
            np.pi * length / 3 * (r_mean + half_cos),
        ])

    def compute_E_matrix(self, modulus=None) -> np.ndarray:
        """Integrated spring matrix, diagonal (c0 ks, c0 kn, c1 ks, c1 kn, c2 ks, c2 kn)."""
        ks = self.material.interface_shear_stiffness
        kn = self.material.interface_normal_stiffness
        c = self.lumping_coefficients()
        return np.diag(np.column_stack([c * ks, c * kn]).reshape(-1))

    def gauss_E_matrix(self, i: int) -> np.ndarray:
        raise IndexError(f"{self.name} element {self.index} has no Gauss points")

    @property
    def K(self) -> np.ndarray:
        B = self._B
        return B.T @ self.compute_E_matrix() @ B

    def relative_displacement(self, u_local: np.ndarray) -> np.ndarray:
        """Relative displacement per node pair (3 x 2): [Δu_r, Δu_z]."""
        return (self._B @ u_local).reshape(3, 2)

    def pair_stress(self, u_local: np.ndarray) -> np.ndarray:
        """Interface stress per node pair (3 x 2): [ks Δu_r, kn Δu_z]."""
        springs = np.array([
            self.material.interface_shear_stiffness,
            self.material.interface_normal_stiffness,
        ])
        return self.relative_displacement(u_local) * springs

    def gauss_strain_and_stress(self, u_local: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        return self.relative_displacement(u_local), self.pair_stress(u_local)
