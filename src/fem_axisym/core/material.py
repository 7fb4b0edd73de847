"""Constitutive models for axisymmetric continuum, membrane and interface elements.

Each material kind is a frozen dataclass carrying only the constants it needs.
The capability flags consumed by the elements (``anisotropy``, ``nonlinearity``,
``no_tension``, ``geosynthetic``) are derived from the kind, so flag
combinations that no element supports cannot be built.

Strain/stress component order for continuum materials:

    [ε_rr, ε_θθ, ε_zz, γ_rz]

and for geosynthetic membranes (local frame of the membrane):

    [ε_axial, ε_hoop]
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

import numpy as np


def _check_modulus(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive: {value}")


def _check_poisson(name: str, value: float) -> None:
    if not -1 < value < 0.5:
        raise ValueError(f"{name} must be in (-1, 0.5): {value}")


def _frozen_vector(values, size: int, label: str) -> np.ndarray:
    vector = np.asarray(values, dtype=float).reshape(-1)
    if vector.size != size:
        raise ValueError(f"{label} must have {size} components, got {vector.size}")
    vector.flags.writeable = False
    return vector


def isotropic_E_matrix(modulus: float, poisson: float) -> np.ndarray:
    """Axisymmetric isotropic constitutive matrix (4x4)."""
    v = poisson
    factor = modulus / ((1 + v) * (1 - 2 * v))
    return factor * np.array([
        [1 - v, v, v, 0],
        [v, 1 - v, v, 0],
        [v, v, 1 - v, 0],
        [0, 0, 0, (1 - 2 * v) / 2],
    ])


def cross_anisotropic_E_matrix(
    modulus_r: float, modulus_z: float, modulus_g: float, poisson_rr: float, poisson_zr: float
) -> np.ndarray:
    """Constitutive matrix of a horizontally isotropic (r-θ plane) material.

    Built as the inverse of the compliance matrix

        | 1/Er    -vrr/Er  -vzr/Ez  0   |
        | -vrr/Er  1/Er    -vzr/Ez  0   |
        | -vzr/Ez -vzr/Ez   1/Ez    0   |
        | 0        0        0       1/G |
    """
    compliance = np.array([
        [1 / modulus_r, -poisson_rr / modulus_r, -poisson_zr / modulus_z, 0],
        [-poisson_rr / modulus_r, 1 / modulus_r, -poisson_zr / modulus_z, 0],
        [-poisson_zr / modulus_z, -poisson_zr / modulus_z, 1 / modulus_z, 0],
        [0, 0, 0, 1 / modulus_g],
    ])
    return np.linalg.inv(compliance)


@dataclass(frozen=True, eq=False)
class IsotropicMaterial:
    """
    Isotropic linear or modulus-dependent continuum material.

    Parameters
    ----------
    name : str
        The name of the material.
    modulus : float
        Young's (resilient) modulus.
    poisson : float
        Poisson's ratio.
    nonlinearity : bool
        Whether the modulus is updated per Gauss point by an iterative solver.
    no_tension : bool
        Whether tensile stresses are to be cut off by the nonlinear solver.
    body_force : Tuple[float, float]
        Body force per unit volume in (r, z).
    thermal_strain : Tuple[float, float, float, float]
        Free thermal strain in (rr, θθ, zz, rz).
    """

    name: str
    modulus: float
    poisson: float
    nonlinearity: bool = False
    no_tension: bool = False
    body_force: Tuple[float, float] = (0.0, 0.0)
    thermal_strain: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    _E: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        _check_modulus("Modulus", self.modulus)
        _check_poisson("Poisson's ratio", self.poisson)
        object.__setattr__(self, "body_force", _frozen_vector(self.body_force, 2, "body_force"))
        object.__setattr__(
            self, "thermal_strain", _frozen_vector(self.thermal_strain, 4, "thermal_strain")
        )
        E = isotropic_E_matrix(self.modulus, self.poisson)
        E.flags.writeable = False
        object.__setattr__(self, "_E", E)

    @property
    def anisotropy(self) -> bool:
        return False

    @property
    def geosynthetic(self) -> bool:
        return False

    @property
    def n_strain(self) -> int:
        return 4

    def E_matrix(self, modulus: Optional[float] = None) -> np.ndarray:
        """Constitutive matrix.

        Without ``modulus`` the linear matrix built from the material constants is
        returned. With ``modulus`` (the current Gauss-point estimate) the matrix is
        rebuilt from that modulus and the material's Poisson's ratio.
        """
        if modulus is None:
            return self._E
        modulus = float(np.asarray(modulus).reshape(-1)[0])
        return isotropic_E_matrix(modulus, self.poisson)


@dataclass(frozen=True, eq=False)
class CrossAnisotropicMaterial:
    """
    Cross-anisotropic continuum material (isotropic in the r-θ plane).

    Parameters
    ----------
    name : str
        The name of the material.
    modulus_r : float
        Horizontal (radial) modulus.
    modulus_z : float
        Vertical (axial) modulus.
    modulus_g : float
        Shear modulus in the r-z plane.
    poisson_rr : float
        Poisson's ratio for strain in the horizontal plane due to horizontal stress.
    poisson_zr : float
        Poisson's ratio for horizontal strain due to vertical stress.
    """

    name: str
    modulus_r: float
    modulus_z: float
    modulus_g: float
    poisson_rr: float
    poisson_zr: float
    nonlinearity: bool = False
    no_tension: bool = False
    body_force: Tuple[float, float] = (0.0, 0.0)
    thermal_strain: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    _E: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        _check_modulus("Radial modulus", self.modulus_r)
        _check_modulus("Axial modulus", self.modulus_z)
        _check_modulus("Shear modulus", self.modulus_g)
        _check_poisson("Poisson's ratio (rr)", self.poisson_rr)
        _check_poisson("Poisson's ratio (zr)", self.poisson_zr)
        object.__setattr__(self, "body_force", _frozen_vector(self.body_force, 2, "body_force"))
        object.__setattr__(
            self, "thermal_strain", _frozen_vector(self.thermal_strain, 4, "thermal_strain")
        )
        E = self._build(self.modulus_r, self.modulus_z, self.modulus_g)
        E.flags.writeable = False
        object.__setattr__(self, "_E", E)

    def _build(self, modulus_r: float, modulus_z: float, modulus_g: float) -> np.ndarray:
        E = cross_anisotropic_E_matrix(
            modulus_r, modulus_z, modulus_g, self.poisson_rr, self.poisson_zr
        )
        if np.any(np.linalg.eigvalsh(E) <= 0):
            raise ValueError(
                f"Material '{self.name}' constants give a non positive-definite matrix"
            )
        return E

    @property
    def modulus(self) -> float:
        """Representative (axial) modulus."""
        return self.modulus_z

    @property
    def anisotropy(self) -> bool:
        return True

    @property
    def geosynthetic(self) -> bool:
        return False

    @property
    def n_strain(self) -> int:
        return 4

    def E_matrix(self, modulus: Optional[np.ndarray] = None) -> np.ndarray:
        """Constitutive matrix, optionally from a Gauss-point triple ``(Er, Ez, G)``."""
        if modulus is None:
            return self._E
        modulus_r, modulus_z, modulus_g = np.asarray(modulus, dtype=float).reshape(3)
        return self._build(modulus_r, modulus_z, modulus_g)


@dataclass(frozen=True, eq=False)
class GeosyntheticMaterial:
    """
    Geosynthetic membrane with interface springs.

    The membrane matrix is ``E = [[1, v], [v, 1]] * M * t / (1 - v²)`` and the
    springs ``ks`` (shear) and ``kn`` (normal) are used by interface elements.

    Parameters
    ----------
    name : str
        The name of the material.
    modulus : float
        Membrane modulus M.
    poisson : float
        Poisson's ratio v.
    thickness : float
        Membrane thickness t.
    shear_stiffness : float
        Interface shear spring stiffness ks.
    normal_stiffness : float
        Interface normal spring stiffness kn.
    """

    name: str
    modulus: float
    poisson: float
    thickness: float
    shear_stiffness: float
    normal_stiffness: float
    _E: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        _check_modulus("Modulus", self.modulus)
        _check_modulus("Thickness", self.thickness)
        _check_poisson("Poisson's ratio", self.poisson)
        if self.shear_stiffness < 0 or self.normal_stiffness < 0:
            raise ValueError(
                f"Interface stiffness must be non-negative: "
                f"ks={self.shear_stiffness}, kn={self.normal_stiffness}"
            )
        v = self.poisson
        E = np.array([[1, v], [v, 1]]) * self.modulus * self.thickness / (1 - v * v)
        E.flags.writeable = False
        object.__setattr__(self, "_E", E)

    @property
    def anisotropy(self) -> bool:
        return False

    @property
    def nonlinearity(self) -> bool:
        return False

    @property
    def no_tension(self) -> bool:
        return False

    @property
    def geosynthetic(self) -> bool:
        return True

    @property
    def n_strain(self) -> int:
        return 2

    @property
    def body_force(self) -> np.ndarray:
        return np.zeros(2)

    @property
    def thermal_strain(self) -> np.ndarray:
        return np.zeros(2)

    @property
    def interface_shear_stiffness(self) -> float:
        return self.shear_stiffness

    @property
    def interface_normal_stiffness(self) -> float:
        return self.normal_stiffness

    def E_matrix(self, modulus=None) -> np.ndarray:
        """Membrane constitutive matrix (2x2); ``modulus`` is ignored."""
        return self._E


Material = Union[IsotropicMaterial, CrossAnisotropicMaterial, GeosyntheticMaterial]
