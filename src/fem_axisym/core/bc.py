"""
Loads and boundary conditions for axisymmetric elasticity problems.
"""

from typing import TYPE_CHECKING, Dict, Iterable, Optional, Tuple

import numpy as np
import scipy.sparse as sp

if TYPE_CHECKING:
    from fem_axisym.elements.elements import AxisymmetricElement


class EdgeLoad:
    """Uniform traction (Neumann condition) on one edge of a solid element.

    Parameters
    ----------
    element : AxisymmetricElement
        Loaded element.
    edge : int
        Local edge index of the element's shape.
    traction : Iterable[float]
        Traction per unit area [t_r, t_z] in global axes.

    Examples
    --------
    >>> load = EdgeLoad(element, 2, [0.0, -100.0])  # pressure on the top edge
    """

    def __init__(self, element: "AxisymmetricElement", edge: int, traction: Iterable[float]):
        traction = np.asarray(traction, dtype=float).reshape(-1)
        if traction.size != 2:
            raise ValueError(f"Edge traction requires (t_r, t_z), got {traction}")
        self.element = element
        self.edge = edge
        self.traction = traction

    def equivalent_load(self) -> np.ndarray:
        """Element-local equivalent nodal load vector."""
        return self.element.edge_load(self.edge, self.traction)


class DirichletCondition:
    """Represents a Dirichlet boundary condition (fixed DOFs) in a FEM system.

    Parameters
    ----------
    dofs : Iterable[int]
        Global degree of freedom indices (0-based) where the condition is applied.
        Node ``i`` owns DOFs ``2*i`` (radial) and ``2*i + 1`` (axial).
    value : float
        Fixed displacement value imposed on the specified DOFs.

    Attributes
    ----------
    dofs : tuple[int]
        Sorted unique global DOF indices where the condition is applied.
    value : float
        Prescribed displacement value at the specified DOFs.

    Examples
    --------
    >>> bc = DirichletCondition([0, 1], 0.0)  # Fix node 0 at 0 displacement
    """

    def __init__(self, dofs: Iterable[int], value: float = 0.0):
        self.dofs = tuple(sorted(set(int(d) for d in dofs)))
        self.value = value

    def __repr__(self):
        return f"<DirichletCondition dofs={list(self.dofs)} value={self.value}>"


class BoundaryConditionManager:
    """Handles boundary conditions and system reduction for sparse FEM systems.

    Parameters
    ----------
    stiffness : sp.spmatrix
        Global stiffness matrix in sparse format
    load : np.ndarray
        Global load vector

    Attributes
    ----------
    n_dof : int
        Total number of degrees of freedom
    free_dofs : np.ndarray
        Unconstrained degrees of freedom
    fixed_dofs : Dict[int, float]
        Constrained DOFs with prescribed values
    """

    def __init__(self, stiffness: sp.spmatrix, load: np.ndarray):
        self._validate_inputs(stiffness, load)

        self.K = sp.csr_matrix(stiffness)
        self.F = np.array(load, dtype=float)
        self.n_dof = self.K.shape[0]

        self._fixed_dofs: Dict[int, float] = {}
        self._free: Optional[np.ndarray] = None
        self._fixed: Optional[np.ndarray] = None

    @staticmethod
    def _validate_inputs(stiffness: sp.spmatrix, load: np.ndarray) -> None:
        """Validate matrix dimensions."""
        if stiffness.shape[0] != stiffness.shape[1]:
            raise ValueError("Stiffness matrix must be square")

        if stiffness.shape[0] != len(load):
            raise ValueError("Stiffness and load dimensions mismatch")

    def apply_dirichlet(self, conditions: Iterable[DirichletCondition]) -> None:
        """Apply Dirichlet boundary conditions to the system.

        Parameters
        ----------
        conditions : Iterable[DirichletCondition]
            Boundary conditions to apply

        Raises
        ------
        ValueError
            If invalid DOFs are specified or conflicting values are provided
        """
        fixed_dofs = {}
        for bc in conditions:
            for dof in bc.dofs:
                self._validate_dof(dof)
                if dof in fixed_dofs and not np.isclose(fixed_dofs[dof], bc.value):
                    raise ValueError(
                        f"Conflicting values for DOF {dof}: {fixed_dofs[dof]} vs {bc.value}"
                    )
                fixed_dofs[dof] = bc.value

        self._fixed_dofs = fixed_dofs
        self._fixed = np.array(sorted(fixed_dofs), dtype=np.int64)
        self._free = np.setdiff1d(np.arange(self.n_dof, dtype=np.int64), self._fixed)

    def _validate_dof(self, dof: int) -> None:
        """Validate DOF index."""
        if not 0 <= dof < self.n_dof:
            raise ValueError(f"DOF {dof} out of range [0, {self.n_dof - 1}]")

    @property
    def reduced_system(self) -> Tuple[sp.csr_matrix, np.ndarray]:
        """Get reduced stiffness and load.

        The load is corrected by the coupling of the free DOFs with the
        prescribed displacements: ``F_red = F_f - K_fc u_c``.

        Returns
        -------
        Tuple[sp.csr_matrix, np.ndarray]
            (K_red, F_red)
        """
        if self._free is None:
            raise RuntimeError("Boundary conditions not applied")

        K_red = self.K[self._free][:, self._free]
        F_red = self.F[self._free].copy()

        if self._fixed.size:
            u_fixed = np.array([self._fixed_dofs[d] for d in self._fixed])
            F_red -= self.K[self._free][:, self._fixed] @ u_fixed

        return K_red.tocsr(), F_red

    def expand_solution(self, u_red: np.ndarray) -> np.ndarray:
        """Expand reduced solution vector to full system DOFs.

        Parameters
        ----------
        u_red : np.ndarray
            Solution vector from reduced system

        Returns
        -------
        np.ndarray
            Full solution vector with fixed DOFs inserted
        """
        u_full = np.zeros(self.n_dof)
        u_full[self._free] = u_red
        for dof, val in self._fixed_dofs.items():
            u_full[dof] = val
        return u_full

    @property
    def free_dofs(self) -> np.ndarray:
        """Indices of unconstrained degrees of freedom."""
        return self._free.copy() if self._free is not None else np.array([], dtype=np.int64)

    @property
    def fixed_dofs(self) -> Dict[int, float]:
        """Dictionary of constrained DOFs with prescribed values."""
        return self._fixed_dofs.copy()
