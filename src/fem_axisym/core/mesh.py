"""
Mesh entities for axisymmetric analysis.

- Node: a point in the (r, z) half plane with displacement, force and the
  running accumulators used to average recovered strain and stress.
- MeshModel: the index-stable node array plus the element list, as handed to
  an analysis by the mesh reader.
"""

from typing import TYPE_CHECKING, Dict, Iterable, List, Sequence, Union

import numpy as np

if TYPE_CHECKING:
    from fem_axisym.core.material import Material
    from fem_axisym.elements.elements import AxisymmetricElement


class Node:
    """
    Represents a mesh node of an axisymmetric model.

    Three accumulator families are kept independently: continuum strain and
    stress (4 components), membrane strain and stress (2 components) and
    interface stress (2 components). Every element touching the node adds its
    extrapolated contribution and bumps the family count; the ``average_*``
    accessors then divide the accumulator in place.

    Attributes
    ----------
    index : int
        Position of the node in the mesh node array.
    coords : np.ndarray
        Global coordinates [r, z].
    displacement : np.ndarray
        Nodal displacement [u_r, u_z], written by the solver.
    force : np.ndarray
        Applied point load [F_r, F_z] (total ring load).
    """

    def __init__(self, index: int, coords: Union[Iterable[float], np.ndarray]):
        coords_arr = np.array(coords, dtype=float).reshape(-1)
        if coords_arr.size != 2:
            raise ValueError(f"Node {index} requires (r, z) coordinates, got {coords_arr}")
        self.index = index
        self.coords = coords_arr
        self.displacement = np.zeros(2)
        self.force = np.zeros(2)
        self.reset_accumulators()

    def __repr__(self):
        return f"<Node id={self.index} coords={self.coords.tolist()}>"

    @property
    def r(self) -> float:
        return self.coords[0]

    @property
    def z(self) -> float:
        return self.coords[1]

    @property
    def dofs(self) -> tuple:
        """Global DOF indices (radial, axial)."""
        return (2 * self.index, 2 * self.index + 1)

    def set_displacement(self, u_r: float, u_z: float) -> None:
        self.displacement = np.array([u_r, u_z], dtype=float)

    def set_force(self, f_r: float, f_z: float) -> None:
        self.force = np.array([f_r, f_z], dtype=float)

    def reset_accumulators(self) -> None:
        """Zero all accumulators and counts before a recovery cycle."""
        self.strain = np.zeros(4)
        self.stress = np.zeros(4)
        self.count = 0
        self.membrane_strain = np.zeros(2)
        self.membrane_stress = np.zeros(2)
        self.membrane_count = 0
        self.interface_stress = np.zeros(2)
        self.interface_count = 0

    def add_strain_and_stress(self, strain: np.ndarray, stress: np.ndarray) -> None:
        self.strain += strain
        self.stress += stress
        self.count += 1

    def add_membrane_strain_and_stress(self, strain: np.ndarray, stress: np.ndarray) -> None:
        self.membrane_strain += strain
        self.membrane_stress += stress
        self.membrane_count += 1

    def add_interface_stress(self, stress: np.ndarray) -> None:
        self.interface_stress += stress
        self.interface_count += 1

    # The averaging accessors divide in place. Call each exactly once per
    # recovery cycle; a node no element touched keeps its zero accumulator.

    def average_strain(self) -> np.ndarray:
        if self.count == 0:
            return self.strain
        self.strain /= self.count
        return self.strain

    def average_stress(self) -> np.ndarray:
        if self.count == 0:
            return self.stress
        self.stress /= self.count
        return self.stress

    def average_membrane_strain(self) -> np.ndarray:
        if self.membrane_count == 0:
            return self.membrane_strain
        self.membrane_strain /= self.membrane_count
        return self.membrane_strain

    def average_membrane_stress(self) -> np.ndarray:
        if self.membrane_count == 0:
            return self.membrane_stress
        self.membrane_stress /= self.membrane_count
        return self.membrane_stress

    def average_interface_stress(self) -> np.ndarray:
        if self.interface_count == 0:
            return self.interface_stress
        self.interface_stress /= self.interface_count
        return self.interface_stress


class MeshModel:
    """
    Container for the nodes, elements and materials of an axisymmetric mesh.

    Parameters
    ----------
    nodes : Sequence[Node]
        Node array; ``nodes[i].index`` must equal ``i``.
    elements : Sequence[AxisymmetricElement], optional
        Elements referencing the node array.
    materials : Dict[str, Material], optional
        Material set keyed by name.
    """

    def __init__(
        self,
        nodes: Sequence[Node],
        elements: Sequence["AxisymmetricElement"] = (),
        materials: Dict[str, "Material"] = None,
    ):
        self.nodes: List[Node] = nodes if isinstance(nodes, list) else list(nodes)
        for position, node in enumerate(self.nodes):
            if node.index != position:
                raise ValueError(
                    f"Node array is not index-stable: position {position} holds node {node.index}"
                )
        self.elements: List["AxisymmetricElement"] = []
        self.materials: Dict[str, "Material"] = dict(materials or {})
        for element in elements:
            self.add_element(element)

    @classmethod
    def from_coordinates(
        cls,
        coords: Union[Sequence[Sequence[float]], np.ndarray],
        materials: Dict[str, "Material"] = None,
    ) -> "MeshModel":
        """Build a mesh holding only nodes from an (n, 2) coordinate array."""
        nodes = [Node(i, xy) for i, xy in enumerate(np.asarray(coords, dtype=float))]
        return cls(nodes, materials=materials)

    def add_node(self, node: Node) -> None:
        if node.index != self.node_count:
            raise ValueError(
                f"Node {node.index} breaks the index-stable array, expected index {self.node_count}"
            )
        self.nodes.append(node)

    def add_element(self, element: "AxisymmetricElement") -> None:
        if element.nodes is not self.nodes:
            raise ValueError(f"Element {element.index} does not reference this mesh's node array")
        self.elements.append(element)
        self.materials.setdefault(element.material.name, element.material)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def element_count(self) -> int:
        return len(self.elements)

    @property
    def dofs_count(self) -> int:
        return 2 * self.node_count

    @property
    def coords_array(self) -> np.ndarray:
        return np.array([node.coords for node in self.nodes]).reshape(-1, 2)

    def __repr__(self):
        return f"<MeshModel nodes={self.node_count} elements={self.element_count}>"
