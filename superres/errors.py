# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Exceptions raised by the reconstruction pipeline."""

__all__ = [
    "SuperResolutionError",
    "ConfigurationError",
    "InvalidParameter",
    "InvalidOptions",
    "DimensionMismatch",
    "IndexOutOfRange",
]


class SuperResolutionError(Exception):
    """Base class for every error raised by ``superres``."""


class ConfigurationError(SuperResolutionError, ValueError):
    """Invalid operator, loss, regularizer or solver configuration."""


class InvalidParameter(ConfigurationError):
    """An operator, loss or regularizer parameter is out of range or malformed."""


class InvalidOptions(ConfigurationError):
    """Solver options or a configuration file are invalid."""


class DimensionMismatch(SuperResolutionError, ValueError):
    """Image sizes disagree with what the image model expects."""


class IndexOutOfRange(SuperResolutionError, IndexError):
    """A frame index outside the configured number of observations."""
