from .elements import (
    AxisymmetricElement,
    ElementFactory,
    ElementFamily,
    ElementType,
    SingularJacobianError,
)
from .INTERFACE import INTERFACE6
from .MEMBRANE import BAR3
from .QUAD import QUAD4, QUAD8
from .shapes import Shape, ShapeB3, ShapeQ4, ShapeQ8, get_shape

__all__ = [
    "AxisymmetricElement",
    "BAR3",
    "ElementFactory",
    "ElementFamily",
    "ElementType",
    "INTERFACE6",
    "QUAD4",
    "QUAD8",
    "Shape",
    "ShapeB3",
    "ShapeQ4",
    "ShapeQ8",
    "SingularJacobianError",
    "get_shape",
]
