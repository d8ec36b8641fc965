# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
import logging

from superres.errors import (
    ConfigurationError,
    DimensionMismatch,
    IndexOutOfRange,
    InvalidOptions,
    InvalidParameter,
    SuperResolutionError,
)
from superres.image_model import ImageModel
from superres.operators import Blur, Downsample, MotionWarp
from superres.solvers import IRLSMapSolver, IRLSMapSolverOptions, TerminationReason

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConfigurationError",
    "DimensionMismatch",
    "IndexOutOfRange",
    "InvalidOptions",
    "InvalidParameter",
    "SuperResolutionError",
    "ImageModel",
    "Blur",
    "Downsample",
    "MotionWarp",
    "IRLSMapSolver",
    "IRLSMapSolverOptions",
    "TerminationReason",
]
