"""
Core module for fem-axisym.

Provides materials, mesh entities, loads and boundary conditions, global
assembly and configuration.
"""

from .assembler import MeshAssembler
from .bc import BoundaryConditionManager, DirichletCondition, EdgeLoad
from .config import AnalysisConfig, LoggingConfig, MaterialConfig, SolverConfig, setup_logging
from .material import CrossAnisotropicMaterial, GeosyntheticMaterial, IsotropicMaterial, Material
from .mesh import MeshModel, Node

__all__ = [
    "AnalysisConfig",
    "BoundaryConditionManager",
    "CrossAnisotropicMaterial",
    "DirichletCondition",
    "EdgeLoad",
    "GeosyntheticMaterial",
    "IsotropicMaterial",
    "LoggingConfig",
    "Material",
    "MaterialConfig",
    "MeshAssembler",
    "MeshModel",
    "Node",
    "SolverConfig",
    "setup_logging",
]
