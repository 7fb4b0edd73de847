"""
Strain and Stress Recovery for Axisymmetric Elements.

Gauss-point strains and stresses are evaluated per element, extrapolated to
the element nodes and averaged over all elements sharing a node.

Theory
------
At Gauss point i of a solid element:

    ε_i = B_i · u_e
    σ_i = E_i · (ε_i - ε₀)

where ε₀ is the free thermal strain. Nodal values follow from the Shape's
extrapolation matrix X (n_nodes x n_gauss):

    ε_nodes = X · ε_gauss

Membrane elements recover (axial, hoop) strain and stress the same way.
Interface elements recover, per node pair, the relative displacement and the
spring stress (ks Δu_r, kn Δu_z), which both nodes of the pair receive.

Recovery is a reduction: every element emits NodalContribution records and a
single pass adds them to the node accumulators. The evaluation step reads
only element data and the displacement vector.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

import numpy as np

from fem_axisym.elements.elements import AxisymmetricElement, ElementFamily

if TYPE_CHECKING:
    from fem_axisym.core.mesh import MeshModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodalContribution:
    """
    Extrapolated element value destined for one node accumulator.

    Attributes
    ----------
    node_id : int
        Global node index.
    family : ElementFamily
        Selects the accumulator (continuum, membrane or interface).
    stress : np.ndarray
        Stress components.
    strain : np.ndarray, optional
        Strain components (None for interface contributions).
    """

    node_id: int
    family: ElementFamily
    stress: np.ndarray
    strain: Optional[np.ndarray] = None


@dataclass
class NodalResults:
    """
    Averaged nodal fields, one row per node.

    Attributes
    ----------
    displacement : np.ndarray
        (n_nodes x 2) [u_r, u_z]
    strain, stress : np.ndarray
        (n_nodes x 4) [rr, θθ, zz, rz]
    membrane_strain, membrane_stress : np.ndarray
        (n_nodes x 2) [axial, hoop]
    interface_stress : np.ndarray
        (n_nodes x 2) [shear, normal]
    """

    displacement: np.ndarray
    strain: np.ndarray
    stress: np.ndarray
    membrane_strain: np.ndarray
    membrane_stress: np.ndarray
    interface_stress: np.ndarray

    def __post_init__(self):
        for array in self.__dict__.values():
            array.flags.writeable = False

    def to_dict(self) -> Dict[str, np.ndarray]:
        """Named point-data arrays for export."""
        return {
            "u_r": self.displacement[:, 0],
            "u_z": self.displacement[:, 1],
            "strain_rr": self.strain[:, 0],
            "strain_tt": self.strain[:, 1],
            "strain_zz": self.strain[:, 2],
            "strain_rz": self.strain[:, 3],
            "sigma_rr": self.stress[:, 0],
            "sigma_tt": self.stress[:, 1],
            "sigma_zz": self.stress[:, 2],
            "sigma_rz": self.stress[:, 3],
            "membrane_strain_axial": self.membrane_strain[:, 0],
            "membrane_strain_hoop": self.membrane_strain[:, 1],
            "membrane_stress_axial": self.membrane_stress[:, 0],
            "membrane_stress_hoop": self.membrane_stress[:, 1],
            "interface_shear": self.interface_stress[:, 0],
            "interface_normal": self.interface_stress[:, 1],
        }


class StressRecovery:
    """
    Strain/stress recovery over a mesh.

    Parameters
    ----------
    mesh : MeshModel
        Mesh whose nodes receive the recovered values.
    """

    def __init__(self, mesh: "MeshModel"):
        self.mesh = mesh

    def element_contributions(
        self, element: AxisymmetricElement, displacement: np.ndarray
    ) -> List[NodalContribution]:
        """Evaluate one element and extrapolate its Gauss values to its nodes."""
        u_local = element.gather(displacement)
        strain, stress = element.gauss_strain_and_stress(u_local)

        if element.element_family == ElementFamily.INTERFACE:
            contributions = []
            for k in range(3):
                for local in (k, k + 3):
                    node_id = element.node_ids[local]
                    contributions.append(
                        NodalContribution(node_id, element.element_family, stress[k])
                    )
            return contributions

        extrapolation = element.shape.extrapolation_matrix
        nodal_strain = extrapolation @ strain
        nodal_stress = extrapolation @ stress
        return [
            NodalContribution(node_id, element.element_family, nodal_stress[a], nodal_strain[a])
            for a, node_id in enumerate(element.node_ids)
        ]

    def compute(self, displacement: np.ndarray) -> List[NodalContribution]:
        """Contributions of every element of the mesh."""
        contributions: List[NodalContribution] = []
        for element in self.mesh.elements:
            contributions.extend(self.element_contributions(element, displacement))
        return contributions

    def apply(self, contributions: Iterable[NodalContribution]) -> None:
        """Reduce contributions into the node accumulators."""
        nodes = self.mesh.nodes
        for c in contributions:
            node = nodes[c.node_id]
            if c.family == ElementFamily.SOLID:
                node.add_strain_and_stress(c.strain, c.stress)
            elif c.family == ElementFamily.MEMBRANE:
                node.add_membrane_strain_and_stress(c.strain, c.stress)
            else:
                node.add_interface_stress(c.stress)

    def recover(self, displacement: np.ndarray) -> None:
        """Reset accumulators, evaluate all elements and reduce into the nodes."""
        for node in self.mesh.nodes:
            node.reset_accumulators()
        contributions = self.compute(displacement)
        self.apply(contributions)
        logger.info(
            "Recovered strain/stress: %d elements, %d nodal contributions",
            self.mesh.element_count,
            len(contributions),
        )
