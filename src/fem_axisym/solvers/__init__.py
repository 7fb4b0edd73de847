from .linear import LinearStaticAnalysis
from .solver import Analysis
from .stress_recovery import NodalContribution, NodalResults, StressRecovery

__all__ = [
    "Analysis",
    "LinearStaticAnalysis",
    "NodalContribution",
    "NodalResults",
    "StressRecovery",
]
