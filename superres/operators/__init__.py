# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
from superres.operators.base import DegradationOperator
from superres.operators.blur import Blur, gaussian_kernel
from superres.operators.downsample import Downsample
from superres.operators.motion import MotionWarp

__all__ = [
    "DegradationOperator",
    "Blur",
    "gaussian_kernel",
    "Downsample",
    "MotionWarp",
]
