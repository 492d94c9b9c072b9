from __future__ import annotations
import numpy as np
from numpy.typing import ArrayLike
from scipy.special import expit, logsumexp

BETA_MAX = 20.0
PENALTY = 1e7

def log_softmax(evs: ArrayLike, beta: float) -> np.ndarray:
    """Log choice probabilities ``beta*v_k - log(sum_j exp(beta*v_j))``."""
    x = beta * np.asarray(evs, dtype=float)
    return x - logsumexp(x)

def softmax(evs: ArrayLike, beta: float) -> np.ndarray:
    return np.exp(log_softmax(evs, beta))

def norm2alpha(x: ArrayLike) -> np.ndarray:
    """Map R -> (0,1)."""
    return expit(np.asarray(x))

def alpha2norm(a: ArrayLike) -> np.ndarray:
    a = np.asarray(a)
    eps = 1e-12
    a = np.clip(a, eps, 1 - eps)
    return -np.log(1.0 / a - 1.0)

def norm2beta(x: ArrayLike, max_val: float = BETA_MAX) -> np.ndarray:
    """Map R -> (0,max_val)."""
    return max_val * expit(np.asarray(x))

def beta2norm(b: ArrayLike, max_val: float = BETA_MAX) -> np.ndarray:
    b = np.asarray(b)
    eps = 1e-12
    b = np.clip(b, eps, max_val - eps)
    return np.log(b / (max_val - b))

def norm2bounded(x: ArrayLike, lo: float, hi: float) -> np.ndarray:
    """Map R -> (lo, hi) as ``hi*(e^x + k)/(e^x + k + 1)`` with ``k = lo/(hi-lo)``.

    Written as ``hi*(1 - 1/(e^x + k + 1))`` so that large ``x`` saturates at
    ``hi`` instead of producing ``inf/inf``.
    """
    k = lo / (hi - lo)
    with np.errstate(over='ignore'):
        ex = np.exp(np.asarray(x, dtype=float))
    return hi * (1.0 - 1.0 / (ex + k + 1.0))

def bounded2norm(y: ArrayLike, lo: float, hi: float) -> np.ndarray:
    """Inverse of :func:`norm2bounded` on the open interval (lo, hi)."""
    y = np.asarray(y, dtype=float)
    k = lo / (hi - lo)
    return np.log((y * (k + 1.0) - hi * k) / (hi - y))

# name, lower bound, upper bound of the bounded entries of the
# conditioned-hallucination observation model
_CONDHALLUC_BOUNDED = (
    ("h_intensity_sal", 0.75, 1.0),
    ("l_intensity_conf", 0.0, 0.25),
)

def condhalluc_transp(ptrans: ArrayLike) -> tuple[np.ndarray, dict[str, float]]:
    """Transform conditioned-hallucination observation parameters to their native space.

    Parameters
    ----------
    ptrans : array-like, shape (4,)
        Unconstrained parameters ``[log be, log nu, h_sal, l_conf]``.

    Returns
    -------
    pvec : np.ndarray, shape (4,)
        ``be`` and ``nu`` are positive; ``h_intensity_sal`` lies in
        (0.75, 1] and ``l_intensity_conf`` in [0, 0.25).
    pstruct : dict
        The same values keyed by parameter name.
    """
    ptrans = np.asarray(ptrans, dtype=float).reshape(-1)
    if ptrans.size != 4:
        raise ValueError(f"ptrans must have 4 entries, got {ptrans.size}")

    pvec = np.full(ptrans.size, np.nan)
    with np.errstate(over='ignore'):
        pvec[0] = np.exp(ptrans[0])  # be
        pvec[1] = np.exp(ptrans[1])  # nu
    pstruct = {"be": float(pvec[0]), "nu": float(pvec[1])}
    for i, (name, lo, hi) in enumerate(_CONDHALLUC_BOUNDED, start=2):
        pvec[i] = norm2bounded(ptrans[i], lo, hi)
        pstruct[name] = float(pvec[i])
    return pvec, pstruct

def condhalluc_ptrans(pvec: ArrayLike) -> np.ndarray:
    """Inverse of :func:`condhalluc_transp`: native -> unconstrained space."""
    pvec = np.asarray(pvec, dtype=float).reshape(-1)
    if pvec.size != 4:
        raise ValueError(f"pvec must have 4 entries, got {pvec.size}")

    ptrans = np.full(pvec.size, np.nan)
    ptrans[0] = np.log(pvec[0])
    ptrans[1] = np.log(pvec[1])
    for i, (_, lo, hi) in enumerate(_CONDHALLUC_BOUNDED, start=2):
        ptrans[i] = bounded2norm(pvec[i], lo, hi)
    return ptrans

def check_bounds(val: float, lo: float, hi: float, penalty: float = PENALTY) -> float | None:
    if val < lo or val > hi:
        return penalty
    return None


def calc_fval(negll: float, params: ArrayLike, prior=None, output: str = 'npl') -> float:
    """Return objective value given a negative log-likelihood.

    Parameters
    ----------
    negll : float
        Negative log-likelihood of the data under the model.
    params : array-like
        Parameter vector passed to the prior.  Only used when `prior` is
        provided and ``output`` is ``"npl"``.
    prior : object or None, optional
        Object with a ``logpdf`` method returning the log prior density.
        When ``None`` the function reduces to returning ``negll``.
    output : {"npl", "nll"}
        Indicates whether to return the negative posterior likelihood
        (``"npl"``) or just the negative log-likelihood (``"nll"``).

    Returns
    -------
    float
        Objective value suitable for minimisation.  An infinite prior term is
        replaced by :data:`PENALTY`.
    """
    if output not in ('npl', 'nll'):
        raise ValueError(f"output must be 'npl' or 'nll', got {output!r}")
    if output == 'npl' and prior is not None and hasattr(prior, 'logpdf'):
        # minimise -log[ P(data|h) * P(h) ]
        fval = negll - prior.logpdf(np.asarray(params))
        if np.isinf(fval):
            fval = PENALTY
        return float(fval)
    return float(negll)
