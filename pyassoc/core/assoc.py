"""
Associability-modulated reinforcement learning (Pearce-Hall style).

A two-option learner whose value update for the chosen option is scaled by an
associability term that tracks recent absolute prediction errors:

    P(k)      = softmax(beta * EV)
    pe        = r(c) - EV(c)
    assoc'(c) = max((1 - eta) * assoc(c) + eta * |pe|, 0.5)
    EV'(c)    = EV(c) + alpha * assoc(c) * pe

:func:`evaluate` runs the model either on observed choices (:class:`Fit`),
accumulating their log-likelihood, or by sampling choices from its own policy
(:class:`Simulate`).
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Mapping, Union
import numpy as np
import pandas as pd
from numpy.typing import ArrayLike
from ..utils.math import log_softmax

N_CHOICES = 2
ASSOCIABILITY_FLOOR = 0.5
PARAM_NAMES = ("beta", "alpha", "V0", "eta")  # order used by array-valued parameters

class ShapeMismatchError(ValueError):
    """Rewards or choices do not have the expected layout."""

class InvalidChoiceError(ValueError):
    """A choice is not a 1-based option index."""

@dataclass(frozen=True)
class AssocParams:
    """Natural-space parameters of the associability model.

    No range checks are made: ``beta <= 0`` flattens or inverts the softmax,
    and ``alpha``/``eta``/``V0`` outside [0, 1] are passed through as is.
    """

    alpha: float
    beta: float
    V0: float
    eta: float

    @classmethod
    def from_dict(cls, params: Mapping[str, float]) -> "AssocParams":
        missing = [name for name in PARAM_NAMES if name not in params]
        if missing:
            raise ValueError(f"missing parameters: {missing}")
        return cls(**{name: float(params[name]) for name in PARAM_NAMES})

    @classmethod
    def from_array(cls, params: ArrayLike) -> "AssocParams":
        """Build from a length-4 vector ordered ``[beta, alpha, V0, eta]``."""
        arr = np.asarray(params, dtype=float).reshape(-1)
        if arr.size != len(PARAM_NAMES):
            raise ValueError(f"expected {len(PARAM_NAMES)} parameters {PARAM_NAMES}, got {arr.size}")
        return cls(**dict(zip(PARAM_NAMES, map(float, arr))))

    def to_array(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in PARAM_NAMES])

@dataclass(frozen=True)
class Fit:
    """Run on observed 1-based choices and score them."""
    choices: ArrayLike

@dataclass(frozen=True)
class Simulate:
    """Sample choices from the model's policy.

    ``rng`` may be a ``numpy.random.Generator``, an integer seed or ``None``.
    """
    rng: np.random.Generator | int | None = None

Mode = Union[Fit, Simulate]

@dataclass
class AssocOutput:
    choices: np.ndarray            # (T,) observed choices, NaN when simulating
    rewards: np.ndarray            # (2, T)
    expected_reward: np.ndarray    # (2, T)
    prediction_errors: np.ndarray  # (T,)
    P: np.ndarray                  # (2, T)
    sim_choices: np.ndarray        # (T,) sampled choices, NaN when fitting
    act_probs: np.ndarray          # (T,)
    associability: np.ndarray      # (2, T)
    log_likelihood: float

    @property
    def ntrials(self) -> int:
        return self.P.shape[1]

    @property
    def nll(self) -> float:
        return -self.log_likelihood

    @property
    def realized_choices(self) -> np.ndarray:
        """1-based choices the model was run on, observed or simulated, as ints."""
        src = self.sim_choices if np.isnan(self.choices).all() else self.choices
        return src.astype(int)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_frame(self) -> pd.DataFrame:
        """One row per trial."""
        c = self.realized_choices
        idx = np.arange(self.ntrials)
        return pd.DataFrame({
            "trial": idx + 1,
            "choice": c,
            "reward": self.rewards[c - 1, idx],
            "ev_1": self.expected_reward[0],
            "ev_2": self.expected_reward[1],
            "assoc_1": self.associability[0],
            "assoc_2": self.associability[1],
            "p_1": self.P[0],
            "p_2": self.P[1],
            "act_prob": self.act_probs,
            "pe": self.prediction_errors,
        })

def _check_rewards(rewards: ArrayLike) -> np.ndarray:
    rewards = np.array(rewards, dtype=float)
    if rewards.ndim != 2 or rewards.shape[0] != N_CHOICES:
        raise ShapeMismatchError(f"rewards must have shape ({N_CHOICES}, ntrials), got {rewards.shape}")
    if rewards.shape[1] < 1:
        raise ShapeMismatchError("rewards must contain at least one trial")
    return rewards

def _check_choices(choices: ArrayLike, ntrials: int) -> np.ndarray:
    try:
        choices = np.array(choices, dtype=float)
    except (TypeError, ValueError) as err:
        raise InvalidChoiceError(f"choices must be numeric option indices: {err}") from err
    if choices.ndim != 1 or choices.shape[0] != ntrials:
        raise ShapeMismatchError(f"choices must have shape ({ntrials},) to match rewards, got {choices.shape}")
    bad = ~np.isin(choices, np.arange(1, N_CHOICES + 1))
    if bad.any():
        t = int(np.flatnonzero(bad)[0])
        raise InvalidChoiceError(f"choice {choices[t]!r} at trial {t + 1} is not in 1..{N_CHOICES}")
    return choices

def evaluate(params: AssocParams | Mapping[str, float],
             rewards: ArrayLike,
             mode: Mode | None = None) -> AssocOutput:
    """Run the associability model over one block of trials.

    Parameters
    ----------
    params : AssocParams or mapping
        ``alpha``, ``beta``, ``V0`` and ``eta`` in natural space.
    rewards : array-like, shape (2, T)
        ``rewards[k, t]`` is the reward for choosing option ``k+1`` on trial ``t``.
    mode : Fit or Simulate, optional
        ``Fit(choices)`` scores the given 1-based choices; ``Simulate(rng)``
        samples them. ``None`` simulates with a fresh generator.

    Returns
    -------
    AssocOutput
        Traces are sized exactly T. ``log_likelihood`` is the summed
        log-probability of the realized choices, in both modes.

    Raises
    ------
    ShapeMismatchError
        ``rewards`` is not ``(2, T)`` with ``T >= 1``, or ``choices`` is not ``(T,)``.
    InvalidChoiceError
        A choice is not in ``{1, 2}``.
    """
    if not isinstance(params, AssocParams):
        params = AssocParams.from_dict(params)
    if mode is None:
        mode = Simulate()
    rewards = _check_rewards(rewards)
    ntrials = rewards.shape[1]

    if isinstance(mode, Fit):
        choices = _check_choices(mode.choices, ntrials)
        rng = None
    elif isinstance(mode, Simulate):
        choices = np.full(ntrials, np.nan)
        rng = np.random.default_rng(mode.rng)
    else:
        raise TypeError(f"mode must be Fit or Simulate, got {type(mode).__name__}")

    alpha, beta, eta = params.alpha, params.beta, params.eta

    EV = np.zeros((N_CHOICES, ntrials))
    assoc = np.zeros((N_CHOICES, ntrials))
    P = np.zeros((N_CHOICES, ntrials))
    PE = np.zeros(ntrials)
    act_probs = np.zeros(ntrials)
    sim_choices = np.full(ntrials, np.nan)
    log_likelihood = 0.0

    ev = np.array([params.V0, 1.0 - params.V0])
    a = np.ones(N_CHOICES)
    for t in range(ntrials):
        EV[:, t] = ev
        assoc[:, t] = a

        logp = log_softmax(ev, beta)
        p = np.exp(logp)
        P[:, t] = p

        if rng is None:
            c = int(choices[t]) - 1
        else:
            c = int(rng.choice(N_CHOICES, p=p))
            sim_choices[t] = c + 1

        act_probs[t] = p[c]
        log_likelihood += logp[c]

        pe = rewards[c, t] - ev[c]
        PE[t] = pe

        # unchosen options carry over; every entry is floored
        a_next = a.copy()
        a_next[c] = (1 - eta) * a[c] + eta * abs(pe)
        a_next = np.maximum(a_next, ASSOCIABILITY_FLOOR)

        # learning is scaled by the associability entering this trial
        ev_next = ev.copy()
        ev_next[c] = ev[c] + alpha * a[c] * pe

        ev, a = ev_next, a_next

    return AssocOutput(
        choices=choices,
        rewards=rewards,
        expected_reward=EV,
        prediction_errors=PE,
        P=P,
        sim_choices=sim_choices,
        act_probs=act_probs,
        associability=assoc,
        log_likelihood=float(log_likelihood),
    )
