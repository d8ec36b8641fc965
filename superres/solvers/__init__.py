# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
from superres.solvers.base import (
    MapSolver,
    MapSolverOptions,
    SolverDiagnostics,
    SolverResult,
    TerminationReason,
)
from superres.solvers.inner import ConjugateGradientSolver, InnerSolver, LbfgsSolver
from superres.solvers.irls import IRLSMapSolver, IRLSMapSolverOptions
from superres.solvers.policies import (
    FixedThresholds,
    ProblemSizeThresholds,
    ThresholdPolicy,
)

__all__ = [
    "MapSolver",
    "MapSolverOptions",
    "SolverDiagnostics",
    "SolverResult",
    "TerminationReason",
    "InnerSolver",
    "ConjugateGradientSolver",
    "LbfgsSolver",
    "IRLSMapSolver",
    "IRLSMapSolverOptions",
    "ThresholdPolicy",
    "FixedThresholds",
    "ProblemSizeThresholds",
]
