from .core.assoc import (AssocParams, AssocOutput, Fit, Simulate, evaluate,
                         ShapeMismatchError, InvalidChoiceError)
from .core import assoc, priors
from .models.rl import assoc_sim, assoc_fit, assoc_norm
from .utils.math import condhalluc_transp, condhalluc_ptrans

__all__ = [
    "AssocParams",
    "AssocOutput",
    "Fit",
    "Simulate",
    "evaluate",
    "ShapeMismatchError",
    "InvalidChoiceError",
    "assoc",
    "priors",
    "assoc_sim",
    "assoc_fit",
    "assoc_norm",
    "condhalluc_transp",
    "condhalluc_ptrans",
]
