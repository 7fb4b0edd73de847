import logging
from typing import TYPE_CHECKING, Iterable, List, Tuple

import numpy as np
import scipy.sparse as sp

from fem_axisym.core.bc import EdgeLoad
from fem_axisym.core.mesh import MeshModel

if TYPE_CHECKING:
    from fem_axisym.elements.elements import AxisymmetricElement

logger = logging.getLogger(__name__)


class MeshAssembler:
    def __init__(self, mesh: MeshModel):
        """
        Global assembler for axisymmetric meshes using scipy sparse matrices.

        Element stiffness matrices may differ in size (solids, membranes and
        interfaces mix freely), so local matrices are kept per element and
        scattered through COO triplets; duplicate entries are summed on
        conversion to CSR. The element list and DOF count are read from the
        mesh on every assembly call.

        Parameters
        ----------
        mesh : MeshModel
            The computational mesh containing nodes and elements
        """
        self.mesh = mesh

    @property
    def dofs_count(self) -> int:
        """Total number of degrees of freedom in the system (2 per node)."""
        return self.mesh.dofs_count

    def _element_dofs(self) -> List[Tuple["AxisymmetricElement", np.ndarray]]:
        return [(element, element.global_dofs) for element in self.mesh.elements]

    def assemble_stiffness_matrix(self) -> sp.csr_matrix:
        """
        Assemble the global stiffness matrix.

        Returns
        -------
        sp.csr_matrix
            Sparse stiffness matrix (dofs_count x dofs_count)
        """
        element_dofs = self._element_dofs()
        rows, cols, values = [], [], []
        for element, dofs in element_dofs:
            ke = element.K
            logger.debug("Element %d (%s) assembled", element.index, element.name)
            rows.append(np.repeat(dofs, len(dofs)))
            cols.append(np.tile(dofs, len(dofs)))
            values.append(ke.reshape(-1))

        if not values:
            return sp.csr_matrix((self.dofs_count, self.dofs_count))

        K = sp.coo_matrix(
            (np.concatenate(values), (np.concatenate(rows), np.concatenate(cols))),
            shape=(self.dofs_count, self.dofs_count),
        ).tocsr()
        logger.info(
            "Assembled stiffness: %d elements, %d DOFs, %d non-zeros",
            len(element_dofs),
            self.dofs_count,
            K.nnz,
        )
        return K

    def assemble_element_loads(self) -> np.ndarray:
        """
        Assemble equivalent nodal loads intrinsic to the elements.

        Returns
        -------
        np.ndarray
            Body-force plus thermal-strain load vector
        """
        f = np.zeros(self.dofs_count)
        for element, dofs in self._element_dofs():
            np.add.at(f, dofs, element.body_load() + element.thermal_load())
        return f

    def assemble_point_loads(self) -> np.ndarray:
        """Nodal point loads, ``Node.force`` at DOFs ``2i`` and ``2i + 1``."""
        f = np.zeros(self.dofs_count)
        for node in self.mesh.nodes:
            f[list(node.dofs)] += node.force
        return f

    def assemble_edge_loads(self, edge_loads: Iterable[EdgeLoad]) -> np.ndarray:
        """
        Assemble edge tractions into a global load vector.

        Parameters
        ----------
        edge_loads : Iterable[EdgeLoad]
            Loaded element edges

        Returns
        -------
        np.ndarray
            Load vector (dofs_count,)
        """
        f = np.zeros(self.dofs_count)
        for load in edge_loads:
            np.add.at(f, load.element.global_dofs, load.equivalent_load())
        return f

    @staticmethod
    def symmetry_error(K: sp.spmatrix) -> float:
        """Largest entry of |K - Kᵀ| relative to the largest entry of |K|."""
        scale = abs(K).max() if K.nnz else 0.0
        if scale == 0:
            return 0.0
        diff = K - K.T
        return (abs(diff).max() if diff.nnz else 0.0) / scale
