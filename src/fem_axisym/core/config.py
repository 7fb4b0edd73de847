"""
Axisymmetric Analysis Configuration Module.

This module provides a YAML-based configuration for the material set, the
solution strategy and logging of an axisymmetric analysis.

Example YAML configuration:
    materials:
      - type: "isotropic"
        name: "subgrade"
        E: 5.0e4
        nu: 0.35
        body_force: [0.0, -18.0]
      - type: "cross_anisotropic"
        name: "base"
        Er: 1.5e5
        Ez: 3.0e5
        G: 1.0e5
        nu_rr: 0.3
        nu_zr: 0.25
      - type: "geosynthetic"
        name: "geogrid"
        E: 2.0e6
        nu: 0.3
        thickness: 0.002
        ks: 1.0e4
        kn: 1.0e6

    solver:
      type: "LinearStatic"
      check_symmetry: true

    logging:
      level: "INFO"
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from fem_axisym.core.material import (
    CrossAnisotropicMaterial,
    GeosyntheticMaterial,
    IsotropicMaterial,
    Material,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Union[str, int] = "INFO", log_file: Optional[str] = None
) -> logging.Logger:
    """Configure the ``fem_axisym`` logger.

    Parameters
    ----------
    level : str or int
        Logging level name or value.
    log_file : str, optional
        Also write records to this file.

    Returns
    -------
    logging.Logger
        The package logger.
    """
    if isinstance(level, str):
        level = level.upper()
    logger = logging.getLogger("fem_axisym")
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


# =============================================================================
# Enumerations
# =============================================================================


class MaterialType(str, Enum):
    """Type of material model."""

    ISOTROPIC = "isotropic"
    CROSS_ANISOTROPIC = "cross_anisotropic"
    GEOSYNTHETIC = "geosynthetic"


class SolverType(str, Enum):
    """Type of solver to use."""

    LINEAR_STATIC = "LinearStatic"


# =============================================================================
# Configuration Data Classes
# =============================================================================


@dataclass
class MaterialConfig:
    """Material configuration entry.

    Only the properties of the selected ``type`` are used:

    - isotropic: ``E``, ``nu``
    - cross_anisotropic: ``Er``, ``Ez``, ``G``, ``nu_rr``, ``nu_zr``
    - geosynthetic: ``E``, ``nu``, ``thickness``, ``ks``, ``kn``
    """

    type: str
    name: str = "Material"
    E: Optional[float] = None
    nu: Optional[float] = None
    # Cross-anisotropic properties
    Er: Optional[float] = None
    Ez: Optional[float] = None
    G: Optional[float] = None
    nu_rr: Optional[float] = None
    nu_zr: Optional[float] = None
    # Geosynthetic properties
    thickness: Optional[float] = None
    ks: Optional[float] = None
    kn: Optional[float] = None
    # Continuum options
    nonlinearity: bool = False
    no_tension: bool = False
    body_force: List[float] = field(default_factory=lambda: [0.0, 0.0])
    thermal_strain: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])

    _REQUIRED = {
        MaterialType.ISOTROPIC.value: ("E", "nu"),
        MaterialType.CROSS_ANISOTROPIC.value: ("Er", "Ez", "G", "nu_rr", "nu_zr"),
        MaterialType.GEOSYNTHETIC.value: ("E", "nu", "thickness", "ks", "kn"),
    }

    def __post_init__(self):
        valid_types = [m.value for m in MaterialType]
        if self.type not in valid_types:
            raise ValueError(f"Invalid material type: {self.type}. Valid: {valid_types}")
        missing = [key for key in self._REQUIRED[self.type] if getattr(self, key) is None]
        if missing:
            raise ValueError(f"Material '{self.name}' ({self.type}) requires {', '.join(missing)}")

    def build(self) -> Material:
        """Create the material object described by this entry."""
        if self.type == MaterialType.ISOTROPIC.value:
            return IsotropicMaterial(
                name=self.name,
                modulus=float(self.E),
                poisson=float(self.nu),
                nonlinearity=self.nonlinearity,
                no_tension=self.no_tension,
                body_force=tuple(self.body_force),
                thermal_strain=tuple(self.thermal_strain),
            )
        if self.type == MaterialType.CROSS_ANISOTROPIC.value:
            return CrossAnisotropicMaterial(
                name=self.name,
                modulus_r=float(self.Er),
                modulus_z=float(self.Ez),
                modulus_g=float(self.G),
                poisson_rr=float(self.nu_rr),
                poisson_zr=float(self.nu_zr),
                nonlinearity=self.nonlinearity,
                no_tension=self.no_tension,
                body_force=tuple(self.body_force),
                thermal_strain=tuple(self.thermal_strain),
            )
        return GeosyntheticMaterial(
            name=self.name,
            modulus=float(self.E),
            poisson=float(self.nu),
            thickness=float(self.thickness),
            shear_stiffness=float(self.ks),
            normal_stiffness=float(self.kn),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type, "name": self.name}
        for key in self._REQUIRED[self.type]:
            result[key] = getattr(self, key)
        if self.type != MaterialType.GEOSYNTHETIC.value:
            result["nonlinearity"] = self.nonlinearity
            result["no_tension"] = self.no_tension
            result["body_force"] = list(self.body_force)
            result["thermal_strain"] = list(self.thermal_strain)
        return result


@dataclass
class SolverConfig:
    """Solver configuration."""

    type: str = SolverType.LINEAR_STATIC.value
    check_symmetry: bool = True
    symmetry_tolerance: float = 1e-8

    def __post_init__(self):
        valid_types = [s.value for s in SolverType]
        if self.type not in valid_types:
            raise ValueError(f"Invalid solver type: {self.type}. Valid: {valid_types}")
        # PyYAML reads "1e-8" (no dot) as a string
        self.symmetry_tolerance = float(self.symmetry_tolerance)
        if self.symmetry_tolerance <= 0:
            raise ValueError(f"symmetry_tolerance must be positive: {self.symmetry_tolerance}")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: Optional[str] = None

    def __post_init__(self):
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise ValueError(f"Invalid logging level: {self.level}")


@dataclass
class AnalysisConfig:
    """Complete axisymmetric analysis configuration."""

    materials: List[MaterialConfig] = field(default_factory=list)
    solver: SolverConfig = field(default_factory=SolverConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "AnalysisConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        AnalysisConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError
            If the YAML file does not exist.
        ValueError
            If the configuration is invalid.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        """Create configuration from dictionary."""
        materials = [MaterialConfig(**entry) for entry in data.get("materials", [])]
        solver = SolverConfig(**data.get("solver", {}))
        logging_config = LoggingConfig(**data.get("logging", {}))
        return cls(materials=materials, solver=solver, logging=logging_config)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "materials": [m.to_dict() for m in self.materials],
            "solver": {
                "type": self.solver.type,
                "check_symmetry": self.solver.check_symmetry,
                "symmetry_tolerance": self.solver.symmetry_tolerance,
            },
            "logging": {"level": self.logging.level, "file": self.logging.file},
        }

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def build_materials(self) -> Dict[str, Material]:
        """Material objects keyed by name.

        Mesh builders pass the result to ``MeshModel(..., materials=...)`` and
        look up each element's material by name when creating elements.
        """
        return {entry.name: entry.build() for entry in self.materials}

    def validate(self) -> List[str]:
        """Validate the complete configuration.

        Returns
        -------
        list of str
            List of validation warnings (empty if all OK).
        """
        warnings = []

        if not self.materials:
            warnings.append("No materials defined")

        names = [m.name for m in self.materials]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            warnings.append(f"Duplicate material names: {', '.join(duplicates)}")

        return warnings

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = [
            "Axisymmetric Analysis Configuration",
            "=" * 40,
            f"Materials: {len(self.materials)}",
        ]
        for m in self.materials:
            lines.append(f"  {m.name} ({m.type})")
        lines.append(f"Solver: {self.solver.type}")
        if self.solver.check_symmetry:
            lines.append(f"  Symmetry check: tol={self.solver.symmetry_tolerance}")
        lines.append(f"Logging: {self.logging.level}")
        return "\n".join(lines)
