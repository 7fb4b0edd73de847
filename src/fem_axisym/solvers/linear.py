import logging
import warnings

import numpy as np
from scipy.sparse.linalg import MatrixRankWarning, spsolve

from fem_axisym.core.bc import BoundaryConditionManager
from fem_axisym.solvers.solver import Analysis

logger = logging.getLogger(__name__)

RESIDUAL_TOLERANCE = 1e-6


class LinearStaticAnalysis(Analysis):
    """
    Linear static analysis with a direct sparse solve.

    Parameters
    ----------
    mesh : MeshModel
        The computational mesh model
    config : AnalysisConfig, optional
        Analysis settings

    Notes
    -----
    The system is reduced by the Dirichlet conditions, solved with
    ``scipy.sparse.linalg.spsolve`` and expanded back; nodal displacements are
    then written to the mesh and strain/stress are recovered and averaged.
    """

    def solve(self) -> np.ndarray:
        """
        Solve the static FEM problem.

        Returns
        -------
        np.ndarray
            Global displacement vector (2n,)

        Raises
        ------
        ValueError
            If the reduced stiffness matrix is singular (insufficient constraints)
        """
        self.assemble_stiffness()
        self.apply_force()

        bc_manager = BoundaryConditionManager(self.K, self.F)
        bc_manager.apply_dirichlet(self.dirichlet_conditions)
        K_red, F_red = bc_manager.reduced_system
        logger.info(
            "Solving linear static system: %d free DOFs, %d fixed DOFs",
            K_red.shape[0],
            len(bc_manager.fixed_dofs),
        )

        if K_red.shape[0]:
            with warnings.catch_warnings():
                warnings.simplefilter("error", MatrixRankWarning)
                try:
                    u_red = np.atleast_1d(spsolve(K_red.tocsc(), F_red))
                except MatrixRankWarning as exc:
                    raise ValueError(
                        "Singular stiffness matrix; check the Dirichlet conditions"
                    ) from exc
            if not np.all(np.isfinite(u_red)):
                raise ValueError("Singular stiffness matrix; check the Dirichlet conditions")
            # A nearly singular factorization can return a finite vector that
            # does not satisfy the system.
            residual = np.linalg.norm(K_red @ u_red - F_red)
            scale = max(np.linalg.norm(F_red), np.finfo(float).tiny)
            if residual > RESIDUAL_TOLERANCE * scale:
                raise ValueError(
                    f"Singular stiffness matrix; relative residual {residual / scale:.3e}"
                )
        else:
            u_red = np.zeros(0)

        self.set_displacement(bc_manager.expand_solution(u_red))
        logger.info("Max |u| = %.6e", np.abs(self.u).max() if self.u.size else 0.0)

        self.compute_strain_and_stress()
        self.average_strain_and_stress()
        return self.u
