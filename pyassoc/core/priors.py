from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol
import numpy as np

class Prior(Protocol):
    """Protocol for prior objects accepted by :func:`pyassoc.utils.math.calc_fval`."""
    def logpdf(self, x: np.ndarray) -> float:
        """Return the log probability density of ``x``."""

@dataclass
class GaussianPrior:
    """Independent Gaussian prior over normalized parameters.

    ``var`` holds per-parameter variances, not standard deviations.
    """

    mu: np.ndarray
    var: np.ndarray

    def __post_init__(self) -> None:
        self.mu = np.asarray(self.mu, dtype=float).reshape(-1)
        self.var = np.asarray(self.var, dtype=float).reshape(-1)
        if self.mu.shape != self.var.shape:
            raise ValueError(f"mu and var must have the same length, got {self.mu.size} and {self.var.size}")
        if np.any(self.var <= 0):
            raise ValueError("var must be positive")

    def logpdf(self, x: np.ndarray) -> float:
        x = np.asarray(x, dtype=float).reshape(-1)
        return float(-0.5 * np.sum(np.log(2 * np.pi * self.var) + (x - self.mu) ** 2 / self.var))

def default_prior(nparams: int = 4, var: float = 100.0) -> GaussianPrior:
    """Broad zero-mean prior, one entry per parameter of the associability model by default."""
    return GaussianPrior(mu=np.zeros(nparams), var=np.full(nparams, var))
