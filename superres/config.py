# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Reconstruction configuration.

A configuration is a mapping (usually read from YAML) such as::

    options:
      max_irls_iterations: 10
      irls_cost_difference_threshold: 1.0e-5
      max_inner_iterations: 50
    data_loss: {name: huber, delta: 0.05}
    regularizers:
      - {name: total_variation, weight: 0.01}
    inner_solver: cg
    threshold_policy: problem_size

Components are given either by name or as a mapping with a ``name`` key and
constructor parameters.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Union

import yaml
from jaxtyping import Array

from superres.errors import InvalidOptions
from superres.image_model import ImageModel
from superres.losses import CharbonnierLoss, DataLoss, HuberLoss, L2Loss
from superres.regularizers import (
    BilateralTotalVariationRegularizer,
    Regularizer,
    TikhonovRegularizer,
    TotalVariationRegularizer,
)
from superres.solvers import (
    ConjugateGradientSolver,
    FixedThresholds,
    InnerSolver,
    IRLSMapSolver,
    IRLSMapSolverOptions,
    LbfgsSolver,
    ProblemSizeThresholds,
    ThresholdPolicy,
)

__all__ = ["ReconstructionConfig", "load_config", "build_solver"]

DATA_LOSSES = {
    "l2": L2Loss,
    "huber": HuberLoss,
    "charbonnier": CharbonnierLoss,
}

REGULARIZERS = {
    "tikhonov": TikhonovRegularizer,
    "total_variation": TotalVariationRegularizer,
    "bilateral_total_variation": BilateralTotalVariationRegularizer,
}

INNER_SOLVERS = {
    "cg": ConjugateGradientSolver,
    "lbfgs": LbfgsSolver,
}

THRESHOLD_POLICIES = {
    "fixed": FixedThresholds,
    "problem_size": ProblemSizeThresholds,
}

_SECTIONS = {"options", "data_loss", "regularizers", "inner_solver", "threshold_policy"}


def _build_component(registry: Dict[str, type], entry: Union[str, Mapping[str, Any]], kind: str):
    if isinstance(entry, str):
        name, params = entry, {}
    elif isinstance(entry, Mapping) and "name" in entry:
        params = dict(entry)
        name = params.pop("name")
    else:
        raise InvalidOptions(f"{kind} must be a name or a mapping with a 'name' key, got {entry!r}")

    if name not in registry:
        raise InvalidOptions(f"unknown {kind} {name!r}, expected one of {sorted(registry)}")
    try:
        return registry[name](**params)
    except TypeError as exc:
        raise InvalidOptions(f"invalid parameters for {kind} {name!r}: {exc}") from exc


@dataclass
class ReconstructionConfig:
    options: IRLSMapSolverOptions = field(default_factory=IRLSMapSolverOptions)
    data_loss: DataLoss = field(default_factory=L2Loss)
    regularizers: List[Regularizer] = field(default_factory=list)
    inner_solver: InnerSolver = field(default_factory=ConjugateGradientSolver)
    threshold_policy: ThresholdPolicy = field(default_factory=FixedThresholds)

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "ReconstructionConfig":
        if config is None:
            config = {}
        if not isinstance(config, Mapping):
            raise InvalidOptions(f"configuration must be a mapping, got {type(config).__name__}")
        unknown = set(config) - _SECTIONS
        if unknown:
            raise InvalidOptions(f"unknown configuration sections: {sorted(unknown)}")

        try:
            options = IRLSMapSolverOptions(**config.get("options", {}))
        except TypeError as exc:
            raise InvalidOptions(f"invalid solver options: {exc}") from exc

        regularizers = config.get("regularizers", [])
        if not isinstance(regularizers, Sequence) or isinstance(regularizers, str):
            raise InvalidOptions("regularizers must be a list")

        return cls(
            options=options,
            data_loss=_build_component(DATA_LOSSES, config.get("data_loss", "l2"), "data loss"),
            regularizers=[
                _build_component(REGULARIZERS, entry, "regularizer") for entry in regularizers
            ],
            inner_solver=_build_component(
                INNER_SOLVERS, config.get("inner_solver", "cg"), "inner solver"
            ),
            threshold_policy=_build_component(
                THRESHOLD_POLICIES, config.get("threshold_policy", "fixed"), "threshold policy"
            ),
        )


def load_config(path) -> ReconstructionConfig:
    with open(path, "r") as f:
        config = yaml.safe_load(f)
    return ReconstructionConfig.from_dict(config)


def build_solver(
    config: ReconstructionConfig,
    image_model: ImageModel,
    observations: Sequence[Array],
) -> IRLSMapSolver:
    return IRLSMapSolver(
        config.options,
        image_model,
        observations,
        data_loss=config.data_loss,
        regularizers=config.regularizers,
        inner_solver=config.inner_solver,
        threshold_policy=config.threshold_policy,
    )
