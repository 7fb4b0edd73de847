"""Tests for global assembly, force application, recovery and the linear static analysis."""

import logging

import numpy as np
import pytest
import scipy.sparse as sp

from fem_axisym.core.assembler import MeshAssembler
from fem_axisym.core.bc import BoundaryConditionManager, DirichletCondition, EdgeLoad
from fem_axisym.core.config import AnalysisConfig, SolverConfig
from fem_axisym.core.material import GeosyntheticMaterial, IsotropicMaterial
from fem_axisym.core.mesh import MeshModel, Node
from fem_axisym.elements import ElementFactory, ElementFamily
from fem_axisym.solvers import LinearStaticAnalysis, StressRecovery

E, NU, P = 1000.0, 0.3, 10.0


@pytest.fixture
def soil():
    return IsotropicMaterial(name="soil", modulus=E, poisson=NU)


@pytest.fixture
def geogrid():
    return GeosyntheticMaterial(
        name="geogrid", modulus=2000.0, poisson=0.3, thickness=0.01,
        shear_stiffness=50.0, normal_stiffness=500.0,
    )


@pytest.fixture
def column(soil):
    """
    Two QUAD4 elements side by side.

        3 ---- 4 ---- 5    z = 1
        |      |      |
        0 ---- 1 ---- 2    z = 0
      r = 1  r = 1.5  r = 2
    """
    mesh = MeshModel.from_coordinates([[1, 0], [1.5, 0], [2, 0], [1, 1], [1.5, 1], [2, 1]])
    for index, conn in enumerate([(0, 1, 4, 3), (1, 2, 5, 4)]):
        mesh.add_element(ElementFactory.get_element("Q4", index, conn, mesh.nodes, soil))
    return mesh


@pytest.fixture
def single_quad(soil):
    mesh = MeshModel.from_coordinates([[1, 0], [2, 0], [2, 1], [1, 1]])
    mesh.add_element(ElementFactory.get_element("Q4", 0, (0, 1, 2, 3), mesh.nodes, soil))
    return mesh


@pytest.fixture
def restore_logger():
    logger = logging.getLogger("fem_axisym")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


def bottom_fixed(mesh):
    dofs = [node.dofs[1] for node in mesh.nodes if np.isclose(node.z, 0.0)]
    return [DirichletCondition(dofs, 0.0)]


class TestAssembly:
    def test_single_element_matches_local_stiffness(self, single_quad):
        K = MeshAssembler(single_quad).assemble_stiffness_matrix()
        assert sp.issparse(K)
        assert np.allclose(K.toarray(), single_quad.elements[0].K)

    def test_shared_dofs_are_summed(self, column):
        K = MeshAssembler(column).assemble_stiffness_matrix().toarray()
        assert K.shape == (12, 12)
        assert np.allclose(K, K.T)
        expected = np.zeros((12, 12))
        for element in column.elements:
            dofs = element.global_dofs
            expected[np.ix_(dofs, dofs)] += element.K
        assert np.allclose(K, expected)

    def test_symmetry_error(self):
        K = sp.csr_matrix(np.array([[2.0, 1.0], [0.0, 2.0]]))
        assert np.isclose(MeshAssembler.symmetry_error(K), 0.5)
        assert MeshAssembler.symmetry_error(sp.csr_matrix(np.eye(2))) == 0.0

    def test_element_loads(self, single_quad):
        material = IsotropicMaterial(name="heavy", modulus=E, poisson=NU, body_force=(0.0, -20.0))
        mesh = MeshModel.from_coordinates(single_quad.coords_array)
        mesh.add_element(ElementFactory.get_element("Q4", 0, (0, 1, 2, 3), mesh.nodes, material))
        f = MeshAssembler(mesh).assemble_element_loads()
        assert np.isclose(f[1::2].sum(), 2 * np.pi * 1.5 * -20.0)


    def test_element_added_after_construction(self, soil):
        mesh = MeshModel.from_coordinates([[1, 0], [2, 0], [2, 1], [1, 1]])
        analysis = LinearStaticAnalysis(mesh)
        mesh.add_element(ElementFactory.get_element("Q4", 0, (0, 1, 2, 3), mesh.nodes, soil))
        K = analysis.assemble_stiffness()
        assert K.nnz > 0
        assert np.allclose(K.toarray(), mesh.elements[0].K)

    def test_node_added_after_construction(self, single_quad, soil):
        assembler = MeshAssembler(single_quad)
        single_quad.add_node(Node(4, [3.0, 0.0]))
        single_quad.add_node(Node(5, [3.0, 1.0]))
        single_quad.add_element(
            ElementFactory.get_element("Q4", 1, (1, 4, 5, 2), single_quad.nodes, soil)
        )
        K = assembler.assemble_stiffness_matrix()
        assert K.shape == (12, 12)
        assert assembler.assemble_element_loads().shape == (12,)


class TestAnalysisSteps:
    def test_assemble_stiffness_resets_force(self, column):
        analysis = LinearStaticAnalysis(column)
        analysis.F[:] = 99.0
        analysis.assemble_stiffness()
        assert np.allclose(analysis.F, 0.0)
        assert analysis.K.shape == (12, 12)

    def test_apply_force_adds_point_and_edge_loads(self, column):
        analysis = LinearStaticAnalysis(column)
        column.nodes[5].set_force(3.0, -4.0)
        analysis.add_edge_loads([EdgeLoad(column.elements[0], 2, [0.0, -P])])
        analysis.assemble_stiffness()
        F = analysis.apply_force()
        assert np.allclose(F[10:12], [3.0, -4.0])
        # Edge from r = 1.5 to r = 1: ∫ r ds = 0.625
        assert np.isclose(F[1::2].sum(), -4.0 - 2 * np.pi * P * 0.625)

    def test_asymmetric_stiffness_warns(self, caplog):
        mesh = MeshModel.from_coordinates([[1.0, 0.0]])
        analysis = LinearStaticAnalysis(mesh)
        analysis.domain.assemble_stiffness_matrix = lambda: sp.csr_matrix(np.array([[1.0, 0.5], [0.0, 1.0]]))
        with caplog.at_level(logging.WARNING, logger="fem_axisym.solvers.solver"):
            analysis.assemble_stiffness()
        assert "not symmetric" in caplog.text

    def test_symmetry_check_can_be_disabled(self, caplog, restore_logger):
        mesh = MeshModel.from_coordinates([[1.0, 0.0]])
        config = AnalysisConfig(solver=SolverConfig(check_symmetry=False))
        analysis = LinearStaticAnalysis(mesh, config)
        analysis.domain.assemble_stiffness_matrix = lambda: sp.csr_matrix(np.array([[1.0, 0.5], [0.0, 1.0]]))
        with caplog.at_level(logging.WARNING, logger="fem_axisym.solvers.solver"):
            analysis.assemble_stiffness()
        assert "not symmetric" not in caplog.text

    def test_results_before_averaging(self, column):
        with pytest.raises(RuntimeError):
            LinearStaticAnalysis(column).nodal_stress

    def test_set_displacement_shape(self, column):
        with pytest.raises(ValueError):
            LinearStaticAnalysis(column).set_displacement(np.zeros(5))


class TestLinearStatic:
    def test_uniaxial_compression(self, column):
        """Uniform pressure on a free-sided column: σ = (0, 0, -p, 0) everywhere."""
        analysis = LinearStaticAnalysis(column)
        analysis.add_dirichlet_conditions(bottom_fixed(column))
        analysis.add_edge_loads([EdgeLoad(element, 2, [0.0, -P]) for element in column.elements])
        u = analysis.solve()

        coords = column.coords_array
        assert np.allclose(u[0::2], NU * P / E * coords[:, 0])
        assert np.allclose(u[1::2], -P / E * coords[:, 1])
        assert np.allclose(analysis.nodal_stress, [0.0, 0.0, -P, 0.0], atol=1e-9)
        assert np.allclose(analysis.nodal_strain, [NU * P / E, NU * P / E, -P / E, 0.0])
        assert np.allclose(analysis.nodal_displacement, u.reshape(-1, 2))
        assert np.allclose(column.nodes[4].displacement, u[8:10])

    def test_point_loads_equal_consistent_edge_loads(self, single_quad):
        element = single_quad.elements[0]
        f_edge = element.edge_load(2, [0.0, -P])

        with_edge = LinearStaticAnalysis(single_quad)
        with_edge.add_dirichlet_conditions(bottom_fixed(single_quad))
        with_edge.add_edge_loads([EdgeLoad(element, 2, [0.0, -P])])
        u_edge = with_edge.solve().copy()

        for node, (f_r, f_z) in zip(single_quad.nodes, f_edge.reshape(-1, 2)):
            node.set_force(f_r, f_z)
        with_points = LinearStaticAnalysis(single_quad)
        with_points.add_dirichlet_conditions(bottom_fixed(single_quad))
        assert np.allclose(with_points.solve(), u_edge)

    def test_prescribed_displacement(self, single_quad):
        """Top pushed down by 0.01: u_r = ν 0.01 r with free lateral expansion."""
        analysis = LinearStaticAnalysis(single_quad)
        analysis.add_dirichlet_conditions(
            bottom_fixed(single_quad) + [DirichletCondition([5, 7], -0.01)]
        )
        u = analysis.solve()
        coords = single_quad.coords_array
        assert np.allclose(u[1::2], -0.01 * coords[:, 1])
        assert np.allclose(u[0::2], NU * 0.01 * coords[:, 0])

    def test_unconstrained_system_raises(self, single_quad):
        single_quad.nodes[2].set_force(0.0, -1.0)
        analysis = LinearStaticAnalysis(single_quad)
        with pytest.raises(ValueError):
            analysis.solve()

    def test_results_are_read_only(self, column):
        analysis = LinearStaticAnalysis(column)
        analysis.add_dirichlet_conditions(bottom_fixed(column))
        analysis.add_edge_loads([EdgeLoad(element, 2, [0.0, -P]) for element in column.elements])
        analysis.solve()
        with pytest.raises(ValueError):
            analysis.nodal_stress[0, 0] = 1.0
        with pytest.raises(ValueError):
            analysis.nodal_displacement[0, 0] = 1.0
        data = analysis.results.to_dict()
        assert np.allclose(data["sigma_zz"], -P)
        assert data["u_r"].shape == (6,)


class TestBoundaryConditionManager:
    def test_conflicting_values(self):
        manager = BoundaryConditionManager(sp.identity(4, format="csr"), np.zeros(4))
        with pytest.raises(ValueError):
            manager.apply_dirichlet([DirichletCondition([0, 1], 0.0), DirichletCondition([1], 1.0)])

    def test_dof_out_of_range(self):
        manager = BoundaryConditionManager(sp.identity(4, format="csr"), np.zeros(4))
        with pytest.raises(ValueError):
            manager.apply_dirichlet([DirichletCondition([4], 0.0)])

    def test_reduce_and_expand(self):
        K = sp.csr_matrix(np.array([[2.0, -1.0, 0.0], [-1.0, 2.0, -1.0], [0.0, -1.0, 2.0]]))
        manager = BoundaryConditionManager(K, np.array([0.0, 1.0, 0.0]))
        manager.apply_dirichlet([DirichletCondition([0], 0.5)])
        K_red, F_red = manager.reduced_system
        assert K_red.shape == (2, 2)
        assert np.allclose(F_red, [1.0 + 0.5, 0.0])
        assert np.allclose(manager.free_dofs, [1, 2])
        assert np.allclose(manager.expand_solution(np.array([7.0, 8.0])), [0.5, 7.0, 8.0])

    def test_reduced_system_before_apply(self):
        manager = BoundaryConditionManager(sp.identity(2, format="csr"), np.zeros(2))
        with pytest.raises(RuntimeError):
            manager.reduced_system


class TestRecoveryRouting:
    @pytest.fixture
    def layered(self, soil, geogrid):
        """
        QUAD4 with a BAR3 on its top edge and an INTERFACE6 joining the BAR3
        nodes (front face 3, 4, 2) to a coincident back face (5, 6, 7).
        """
        mesh = MeshModel.from_coordinates([
            [1, 0], [2, 0], [2, 1], [1, 1], [1.5, 1], [1, 1], [1.5, 1], [2, 1],
        ])
        mesh.add_element(ElementFactory.get_element("Q4", 0, (0, 1, 2, 3), mesh.nodes, soil))
        mesh.add_element(ElementFactory.get_element("B3", 1, (3, 4, 2), mesh.nodes, geogrid))
        mesh.add_element(ElementFactory.get_element("I6", 2, (3, 4, 2, 5, 6, 7), mesh.nodes, geogrid))
        return mesh

    def displacement(self, mesh, a, b, slip):
        coords = mesh.coords_array
        u = np.zeros(mesh.dofs_count)
        u[0::2] = a * coords[:, 0]
        u[1::2] = b * coords[:, 1]
        for node_id in (5, 6, 7):
            u[2 * node_id: 2 * node_id + 2] += slip
        return u

    def test_contributions_per_family(self, layered):
        u = self.displacement(layered, 0.01, -0.02, np.array([1e-3, 2e-3]))
        contributions = StressRecovery(layered).compute(u)
        families = [c.family for c in contributions]
        assert families.count(ElementFamily.SOLID) == 4
        assert families.count(ElementFamily.MEMBRANE) == 3
        assert families.count(ElementFamily.INTERFACE) == 6

    def test_averaged_fields(self, layered, geogrid):
        a, b, slip = 0.01, -0.02, np.array([1e-3, 2e-3])
        analysis = LinearStaticAnalysis(layered)
        analysis.set_displacement(self.displacement(layered, a, b, slip))
        analysis.compute_strain_and_stress()
        results = analysis.average_strain_and_stress()

        assert np.allclose(results.strain[:4], [a, a, b, 0.0])
        # Node 4 belongs to no solid element
        assert np.array_equal(results.strain[4], np.zeros(4))
        # Unit-length membrane: axial strain a L/2, hoop strain a
        assert np.allclose(results.membrane_strain[[2, 3, 4]], [a / 2, a])
        assert np.array_equal(results.membrane_strain[[0, 1]], np.zeros((2, 2)))
        expected_interface = slip * [geogrid.shear_stiffness, geogrid.normal_stiffness]
        assert np.allclose(results.interface_stress[[2, 3, 4, 5, 6, 7]], expected_interface)
        assert np.array_equal(results.interface_stress[[0, 1]], np.zeros((2, 2)))
        assert layered.nodes[3].count == 1
        assert layered.nodes[3].membrane_count == 1
        assert layered.nodes[3].interface_count == 1

    def test_recovery_resets_accumulators(self, layered):
        u = self.displacement(layered, 0.01, -0.02, np.zeros(2))
        analysis = LinearStaticAnalysis(layered)
        analysis.set_displacement(u)
        analysis.compute_strain_and_stress()
        analysis.compute_strain_and_stress()
        assert layered.nodes[2].count == 1
        assert layered.nodes[2].interface_count == 1
