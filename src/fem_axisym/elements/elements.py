from enum import Enum, IntEnum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from fem_axisym.core.material import Material
from fem_axisym.core.mesh import Node
from fem_axisym.elements.shapes import Shape, get_shape

JACOBIAN_TOLERANCE = 1e-12


class SingularJacobianError(ValueError):
    """Raised when an element's geometry gives a singular or inverted Jacobian."""


class ElementFamily(IntEnum):
    SOLID = 1
    MEMBRANE = 2
    INTERFACE = 3


class ElementType(str, Enum):
    QUAD4 = "Q4"
    QUAD8 = "Q8"
    BAR3 = "B3"
    INTERFACE6 = "I6"


class AxisymmetricElement:
    """
    Base class for axisymmetric elements with 2 DOFs (u_r, u_z) per node.

    Elements hold the node array of the mesh by reference and re-read the
    nodal coordinates whenever geometry is needed. The material is shared and
    never modified.

    Parameters
    ----------
    index : int
        Element identity within the mesh.
    node_ids : Sequence[int]
        Global node indices, ordered as the topology's local numbering.
    nodes : Sequence[Node]
        The mesh node array.
    material : Material
        Shared constitutive model.
    """

    name: str = ""
    element_type: Optional[ElementType] = None
    element_family: Optional[ElementFamily] = None
    expected_node_count: int = 0
    dofs_per_node: int = 2

    def __init__(
        self,
        index: int,
        node_ids: Sequence[int],
        nodes: Sequence[Node],
        material: Material,
    ):
        node_ids = tuple(int(i) for i in node_ids)
        if len(node_ids) != self.expected_node_count:
            raise ValueError(
                f"{self.name} element {index} requires {self.expected_node_count} nodes, "
                f"got {len(node_ids)}"
            )
        self._check_material(material)
        self.index = index
        self.node_ids = node_ids
        self.nodes = nodes
        self.material = material
        self.node_count = len(node_ids)
        self.dofs_count = self.node_count * self.dofs_per_node
        self.modulus_at_gauss_pt = self._initial_modulus()

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.index} nodes={list(self.node_ids)}>"

    def _check_material(self, material: Material) -> None:
        if material.geosynthetic:
            raise ValueError(
                f"{self.name} element cannot use geosynthetic material '{material.name}'"
            )

    @property
    def shape(self) -> Optional[Shape]:
        """Shared reference shape of this topology."""
        return get_shape(self.element_type.value)

    @property
    def n_gauss(self) -> int:
        return self.shape.n_gauss

    @property
    def node_coords(self) -> np.ndarray:
        """Current nodal coordinates gathered from the node array (n_nodes x 2)."""
        return np.array([self.nodes[i].coords for i in self.node_ids])

    @property
    def global_dofs(self) -> np.ndarray:
        """Global DOF indices in local order [r0, z0, r1, z1, ...]."""
        ids = np.asarray(self.node_ids)
        return np.column_stack([2 * ids, 2 * ids + 1]).reshape(-1)

    def gather(self, vector: np.ndarray) -> np.ndarray:
        """Extract this element's entries from a global DOF vector."""
        return np.asarray(vector)[self.global_dofs]

    # ------------------------------------------------------------------
    # Constitutive matrix
    # ------------------------------------------------------------------

    def _initial_modulus(self) -> np.ndarray:
        material = self.material
        if material.anisotropy:
            triple = [material.modulus_r, material.modulus_z, material.modulus_g]
            return np.tile(np.asarray(triple, dtype=float), (self.n_gauss, 1))
        return np.full(self.n_gauss, float(material.modulus))

    def compute_E_matrix(self, modulus=None) -> np.ndarray:
        """Constitutive matrix for a Gauss-point modulus estimate.

        Materials flagged ``nonlinearity`` are evaluated at ``modulus``; any other
        material returns its linear matrix.
        """
        if self.material.nonlinearity:
            return self.material.E_matrix(modulus)
        return self.material.E_matrix()

    def gauss_E_matrix(self, i: int) -> np.ndarray:
        if not 0 <= i < self.n_gauss:
            raise IndexError(f"Gauss point index {i} out of range for element {self.index}")
        return self.compute_E_matrix(self.modulus_at_gauss_pt[i])

    # ------------------------------------------------------------------
    # Interface every variant implements
    # ------------------------------------------------------------------

    def compute_B_matrix(self, point) -> np.ndarray:
        raise NotImplementedError

    def gauss_B_matrix(self, i: int) -> np.ndarray:
        raise NotImplementedError

    @property
    def K(self) -> np.ndarray:
        raise NotImplementedError

    def body_load(self) -> np.ndarray:
        return np.zeros(self.dofs_count)

    def thermal_load(self) -> np.ndarray:
        return np.zeros(self.dofs_count)

    def edge_load(self, edge: int, traction: Sequence[float]) -> np.ndarray:
        raise NotImplementedError(f"{self.name} element does not support edge loads")

    def gauss_strain_and_stress(self, u_local: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError


class ElementFactory:
    @staticmethod
    def get_element(
        tag: str,
        index: int,
        node_ids: Sequence[int],
        nodes: Sequence[Node],
        material: Material,
    ) -> AxisymmetricElement:
        from .INTERFACE import INTERFACE6
        from .MEMBRANE import BAR3
        from .QUAD import QUAD4, QUAD8

        ELEMENT_MAP = {
            ElementType.QUAD4: QUAD4,
            ElementType.QUAD8: QUAD8,
            ElementType.BAR3: BAR3,
            ElementType.INTERFACE6: INTERFACE6,
        }
        try:
            element = ELEMENT_MAP[ElementType(tag)]
        except ValueError:
            valid = [t.value for t in ElementType]
            raise KeyError(f"Unknown element tag '{tag}'. Valid: {valid}") from None
        return element(index, node_ids, nodes, material)

    @staticmethod
    def tags() -> List[str]:
        return [t.value for t in ElementType]
