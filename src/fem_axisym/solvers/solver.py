import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np
import scipy.sparse as sp

from fem_axisym.core.assembler import MeshAssembler
from fem_axisym.core.bc import DirichletCondition, EdgeLoad
from fem_axisym.core.config import AnalysisConfig, setup_logging
from fem_axisym.core.mesh import MeshModel
from fem_axisym.solvers.stress_recovery import NodalResults, StressRecovery

logger = logging.getLogger(__name__)


def _readonly(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class Analysis(ABC):
    """
    Abstract base class for axisymmetric analyses.

    Owns the global system (stiffness, force, displacement) and drives
    assembly, force application and strain/stress recovery over the mesh.
    Concrete strategies implement ``solve``.

    Parameters
    ----------
    mesh : MeshModel
        The mesh model used for the simulation.
    config : AnalysisConfig, optional
        Analysis settings; defaults are used when omitted. A supplied
        configuration also applies its ``logging`` section to the
        ``fem_axisym`` logger.

    Attributes
    ----------
    mesh_obj : MeshModel
        The mesh model.
    domain : MeshAssembler
        Global assembler of the mesh.
    K : sp.csr_matrix
        Global stiffness matrix (2n x 2n), set by ``assemble_stiffness``.
    F : np.ndarray
        Global force vector (2n,).
    u : np.ndarray
        Global displacement vector (2n,).
    dirichlet_conditions : List[DirichletCondition]
        List of Dirichlet boundary conditions.
    edge_loads : List[EdgeLoad]
        List of edge tractions.
    """

    def __init__(self, mesh: MeshModel, config: Optional[AnalysisConfig] = None):
        self.mesh_obj = mesh
        if config is None:
            config = AnalysisConfig()
        else:
            setup_logging(config.logging.level, config.logging.file)
        self.config = config
        self.domain = MeshAssembler(mesh)
        self.recovery = StressRecovery(mesh)

        n_dofs = mesh.dofs_count
        self.K: Optional[sp.csr_matrix] = None
        self.F = np.zeros(n_dofs)
        self.u = np.zeros(n_dofs)

        self.dirichlet_conditions: List[DirichletCondition] = []
        self.edge_loads: List[EdgeLoad] = []
        self._results: Optional[NodalResults] = None

    def add_dirichlet_conditions(self, bcs: List[DirichletCondition]) -> None:
        """
        Add Dirichlet boundary conditions to the analysis.

        Parameters
        ----------
        bcs : List[DirichletCondition]
            List of Dirichlet boundary conditions.
        """
        self.dirichlet_conditions = list(bcs)

    def add_edge_loads(self, loads: List[EdgeLoad]) -> None:
        """
        Add edge tractions to the analysis.

        Parameters
        ----------
        loads : List[EdgeLoad]
            List of loaded element edges.
        """
        self.edge_loads = list(loads)

    def assemble_stiffness(self) -> sp.csr_matrix:
        """
        Assemble the global stiffness and the element-intrinsic loads.

        The force vector is reset to the body-force and thermal-strain
        equivalent nodal loads of every element.
        """
        self.K = self.domain.assemble_stiffness_matrix()
        self.F = self.domain.assemble_element_loads()

        solver_config = self.config.solver
        if solver_config.check_symmetry:
            error = self.domain.symmetry_error(self.K)
            if error > solver_config.symmetry_tolerance:
                logger.warning(
                    "Global stiffness is not symmetric: relative error %.3e > %.1e",
                    error,
                    solver_config.symmetry_tolerance,
                )
        return self.K

    def apply_force(self) -> np.ndarray:
        """Add nodal point loads and edge tractions to the force vector."""
        self.F += self.domain.assemble_point_loads()
        if self.edge_loads:
            self.F += self.domain.assemble_edge_loads(self.edge_loads)
        logger.debug(
            "Applied forces: %d edge loads, |F| = %.6e",
            len(self.edge_loads),
            np.linalg.norm(self.F),
        )
        return self.F

    def set_displacement(self, u: np.ndarray) -> None:
        """Store a global displacement vector and write it to the nodes."""
        u = np.asarray(u, dtype=float)
        if u.shape != (self.mesh_obj.dofs_count,):
            raise ValueError(
                f"Displacement vector must have {self.mesh_obj.dofs_count} entries, got {u.shape}"
            )
        self.u = u.copy()
        for node, (u_r, u_z) in zip(self.mesh_obj.nodes, self.u.reshape(-1, 2)):
            node.set_displacement(u_r, u_z)

    def compute_strain_and_stress(self) -> None:
        """Recover element strains/stresses into the node accumulators."""
        displacement = np.concatenate([node.displacement for node in self.mesh_obj.nodes])
        self.recovery.recover(displacement)

    def average_strain_and_stress(self) -> NodalResults:
        """Average every node's accumulators once and store the nodal fields."""
        nodes = self.mesh_obj.nodes

        def gather(values, width):
            return np.array(values, dtype=float).reshape(-1, width)

        self._results = NodalResults(
            displacement=gather([node.displacement for node in nodes], 2),
            strain=gather([node.average_strain() for node in nodes], 4),
            stress=gather([node.average_stress() for node in nodes], 4),
            membrane_strain=gather([node.average_membrane_strain() for node in nodes], 2),
            membrane_stress=gather([node.average_membrane_stress() for node in nodes], 2),
            interface_stress=gather([node.average_interface_stress() for node in nodes], 2),
        )
        return self._results

    @property
    def results(self) -> NodalResults:
        if self._results is None:
            raise RuntimeError("Strain and stress have not been averaged")
        return self._results

    # Read-only nodal accessors for reporting and export

    @property
    def nodal_displacement(self) -> np.ndarray:
        return _readonly(self.u.reshape(-1, 2))

    @property
    def nodal_strain(self) -> np.ndarray:
        return self.results.strain

    @property
    def nodal_stress(self) -> np.ndarray:
        return self.results.stress

    @property
    def nodal_membrane_strain(self) -> np.ndarray:
        return self.results.membrane_strain

    @property
    def nodal_membrane_stress(self) -> np.ndarray:
        return self.results.membrane_stress

    @property
    def nodal_interface_stress(self) -> np.ndarray:
        return self.results.interface_stress

    @abstractmethod
    def solve(self):
        """
        Solve the FEM problem.

        This abstract method must be implemented by subclasses to perform the solution process.
        """
        ...
