import numpy as np
from scipy.optimize import minimize
from pyassoc.core.priors import default_prior
from pyassoc.models.rl import assoc_sim, assoc_fit
from test_helpers import _simulate_assoc_params


def test_minimize_assoc_objective():
    nsubjects, nblocks, ntrials = 2, 2, 30
    params = _simulate_assoc_params(nsubjects)
    sim = assoc_sim(params, nblocks=nblocks, ntrials=ntrials, seed=0)
    all_data = [[c, r] for c, r in zip(sim["choices"], sim["rewards"])]
    prior = default_prior()

    for choices, rewards in all_data:
        x0 = np.zeros(4)
        start = assoc_fit(x0, choices, rewards, prior=prior)
        res = minimize(assoc_fit, x0=x0, args=(choices, rewards, prior, "npl"), method="BFGS")
        assert np.isfinite(res.fun)
        assert res.fun <= start
