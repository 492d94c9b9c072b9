from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import numpy as np
from joblib import Parallel, delayed
from ..core.assoc import AssocParams, Fit, Simulate, evaluate, N_CHOICES, PARAM_NAMES
from ..utils.math import (norm2alpha, alpha2norm, norm2beta, beta2norm,
                          check_bounds, calc_fval, BETA_MAX)

# natural-space bounds used by the objective adapter, in PARAM_NAMES order
BOUNDS = {
    "beta":  (1e-5, BETA_MAX),
    "alpha": (0.0, 1.0),
    "V0":    (0.0, 1.0),
    "eta":   (0.0, 1.0),
}

@dataclass
class TaskConfig:
    """Two-armed reversal task used when no reward schedule is supplied."""
    nblocks: int = 2
    ntrials: int = 40
    reward_probs: Sequence[float] = (0.8, 0.2)  # P(reward) per option in even blocks
    reversal: bool = True                       # swap probabilities on odd blocks

    def __post_init__(self) -> None:
        if len(self.reward_probs) != N_CHOICES:
            raise ValueError(f"reward_probs needs {N_CHOICES} entries, got {len(self.reward_probs)}")
        if self.nblocks < 1 or self.ntrials < 1:
            raise ValueError("nblocks and ntrials must be positive")

def make_rewards(config: TaskConfig, rng: np.random.Generator) -> np.ndarray:
    """Draw a (nblocks, 2, ntrials) schedule of Bernoulli(0/1) rewards."""
    probs = np.asarray(config.reward_probs, dtype=float)
    rewards = np.zeros((config.nblocks, N_CHOICES, config.ntrials))
    for b in range(config.nblocks):
        block_probs = probs[::-1] if (config.reversal and b % 2 == 1) else probs
        rewards[b] = (rng.random((N_CHOICES, config.ntrials)) < block_probs[:, None]).astype(float)
    return rewards

def assoc_norm(params: np.ndarray) -> np.ndarray:
    """Natural ``[beta, alpha, V0, eta]`` -> normalized space used by :func:`assoc_fit`.

    Accepts a single (4,) vector or an (nsubjects, 4) array.
    """
    params = np.asarray(params, dtype=float)
    out = np.empty_like(params)
    out[..., 0] = beta2norm(params[..., 0])
    out[..., 1:] = alpha2norm(params[..., 1:])
    return out

def _norm2params(params: np.ndarray) -> AssocParams:
    return AssocParams(
        beta=float(norm2beta(params[0])),
        alpha=float(norm2alpha(params[1])),
        V0=float(norm2alpha(params[2])),
        eta=float(norm2alpha(params[3])),
    )

def _simulate_subject(theta: AssocParams, rewards: np.ndarray, seed: int | None) -> dict:
    rng = np.random.default_rng(seed)
    outs = [evaluate(theta, rewards[b], Simulate(rng)) for b in range(rewards.shape[0])]
    return {
        "choices"      : np.stack([o.sim_choices for o in outs]).astype(int),
        "rewards"      : rewards,
        "EV"           : np.stack([o.expected_reward for o in outs]),
        "associability": np.stack([o.associability for o in outs]),
        "ch_prob"      : np.stack([o.P for o in outs]),
        "PE"           : np.stack([o.prediction_errors for o in outs]),
        "act_probs"    : np.stack([o.act_probs for o in outs]),
        "nll"          : np.array([o.nll for o in outs]),
    }

def assoc_sim(params: np.ndarray,
              nblocks: int = 2,
              ntrials: int = 40,
              rewards: np.ndarray | None = None,
              reward_probs: Sequence[float] = (0.8, 0.2),
              seed: int | None = None,
              njobs: int = 1,
              verbose: int = 0) -> dict:
    """Simulate choices from the associability model for a group of subjects.

    params: (S,4) NATURAL-SPACE ``[beta, alpha, V0, eta]``. Values are not
            range-checked; the model runs on whatever it is given.
    rewards (optional): (B,2,T) schedule shared by all subjects, or (S,B,2,T).
            When omitted, each subject gets a reversal schedule drawn from
            ``reward_probs`` (see :class:`TaskConfig`).
    seed: subject ``s`` uses ``default_rng(seed + s)``, so results do not
          depend on ``njobs``.

    Returns:
      - params: (S,4)
      - choices: (S,B,T) 1-based option indices
      - rewards: (S,B,2,T)
      - EV, associability, ch_prob: (S,B,2,T)
      - PE, act_probs: (S,B,T)
      - nll: (S,B)
    """
    params = np.asarray(params, dtype=float)
    if params.ndim != 2 or params.shape[1] != len(PARAM_NAMES):
        raise ValueError(f"params must be (nsubjects, {len(PARAM_NAMES)}) = {list(PARAM_NAMES)}")
    nsubjects = params.shape[0]
    seeds = [None if seed is None else seed + s for s in range(nsubjects)]

    if rewards is None:
        config = TaskConfig(nblocks=nblocks, ntrials=ntrials, reward_probs=reward_probs)
        # reward draws use a stream separate from choice sampling
        subj_rewards = [make_rewards(config, np.random.default_rng(None if sd is None else [sd, 1]))
                        for sd in seeds]
    else:
        rewards = np.asarray(rewards, dtype=float)
        if rewards.ndim == 3:
            subj_rewards = [rewards] * nsubjects
        elif rewards.ndim == 4 and rewards.shape[0] == nsubjects:
            subj_rewards = list(rewards)
        else:
            raise ValueError("rewards must be (nblocks, 2, ntrials) or (nsubjects, nblocks, 2, ntrials)")

    results = Parallel(n_jobs=njobs, verbose=verbose)(
        delayed(_simulate_subject)(AssocParams.from_array(params[s]), subj_rewards[s], seeds[s])
        for s in range(nsubjects)
    )

    sim = {key: np.stack([res[key] for res in results]) for key in results[0]}
    sim["params"] = params
    return sim

def assoc_fit(params, choices, rewards, prior=None, output="npl"):
    """
    Objective adapter for EM/MAP drivers: returns NPL or NLL.
    params: (4,) in normalized space, ordered [beta, alpha, V0, eta]
    choices: (T,) or (B,T) 1-based option indices
    rewards: (2,T) or (B,2,T)
    Each block restarts the model from its initial state.
    """
    theta = _norm2params(params)
    for name in PARAM_NAMES:
        penalty = check_bounds(getattr(theta, name), *BOUNDS[name])
        if penalty is not None:
            return penalty

    choices = np.asarray(choices)
    rewards = np.asarray(rewards, dtype=float)
    if choices.ndim == 1:
        choices = choices[None, :]
    if rewards.ndim == 2:
        rewards = rewards[None, :, :]
    if choices.shape[0] != rewards.shape[0]:
        raise ValueError(f"choices has {choices.shape[0]} blocks but rewards has {rewards.shape[0]}")

    outs = [evaluate(theta, rewards[b], Fit(choices[b])) for b in range(rewards.shape[0])]
    nll = float(sum(o.nll for o in outs))

    if output == "all":
        n = choices.size
        k = len(PARAM_NAMES)
        return {
            "params"       : theta.to_array(),
            "choices"      : choices,
            "rewards"      : rewards,
            "EV"           : np.stack([o.expected_reward for o in outs]),
            "associability": np.stack([o.associability for o in outs]),
            "ch_prob"      : np.stack([o.P for o in outs]),
            "PE"           : np.stack([o.prediction_errors for o in outs]),
            "act_probs"    : np.stack([o.act_probs for o in outs]),
            "nll"          : nll,
            "BIC"          : k * np.log(n) + 2.0 * nll,
        }

    return calc_fval(nll, params, prior=prior, output=output)
