"""
Axisymmetric finite-element core.

Solid (QUAD4, QUAD8), membrane (BAR3) and zero-thickness interface
(INTERFACE6) elements sharing one assembly and recovery algorithm.
"""

__version__ = "0.1.0"
