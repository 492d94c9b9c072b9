import numpy as np
import pytest
from pyassoc.core.assoc import Fit, evaluate, AssocParams
from pyassoc.core.priors import GaussianPrior
from pyassoc.models.rl import TaskConfig, make_rewards, assoc_sim, assoc_fit, assoc_norm
from pyassoc.utils.math import PENALTY
from test_helpers import _simulate_assoc_params, _example_block


def test_assoc_sim_shapes():
    nsubjects, nblocks, ntrials = 3, 2, 10
    params = _simulate_assoc_params(nsubjects)
    sim = assoc_sim(params, nblocks=nblocks, ntrials=ntrials, seed=1)

    assert sim["choices"].shape == (nsubjects, nblocks, ntrials)
    assert set(np.unique(sim["choices"])) <= {1, 2}
    for key in ("rewards", "EV", "associability", "ch_prob"):
        assert sim[key].shape == (nsubjects, nblocks, 2, ntrials)
    for key in ("PE", "act_probs"):
        assert sim[key].shape == (nsubjects, nblocks, ntrials)
    assert sim["nll"].shape == (nsubjects, nblocks)
    np.testing.assert_array_equal(sim["params"], params)


def test_assoc_sim_reproducible_across_njobs():
    params = _simulate_assoc_params(4)
    a = assoc_sim(params, nblocks=2, ntrials=15, seed=42, njobs=1)
    b = assoc_sim(params, nblocks=2, ntrials=15, seed=42, njobs=2)
    for key in ("choices", "rewards", "EV", "associability", "nll"):
        np.testing.assert_array_equal(a[key], b[key])


def test_assoc_sim_shared_rewards():
    params = _simulate_assoc_params(2)
    _, rewards, _ = _example_block()
    sim = assoc_sim(params, rewards=rewards[None], seed=0)
    assert sim["rewards"].shape == (2, 1, 2, 3)
    np.testing.assert_array_equal(sim["rewards"][0], sim["rewards"][1])


def test_assoc_sim_rejects_bad_input():
    with pytest.raises(ValueError):
        assoc_sim(np.ones((3, 2)))
    with pytest.raises(ValueError):
        assoc_sim(_simulate_assoc_params(2), rewards=np.zeros((2, 5)))


def test_make_rewards_reversal():
    config = TaskConfig(nblocks=3, ntrials=6, reward_probs=(1.0, 0.0))
    rewards = make_rewards(config, np.random.default_rng(0))
    assert rewards.shape == (3, 2, 6)
    np.testing.assert_array_equal(rewards[0], [[1] * 6, [0] * 6])
    np.testing.assert_array_equal(rewards[1], [[0] * 6, [1] * 6])
    np.testing.assert_array_equal(rewards[2], rewards[0])


def test_task_config_validation():
    with pytest.raises(ValueError):
        TaskConfig(reward_probs=(0.5, 0.3, 0.2))
    with pytest.raises(ValueError):
        TaskConfig(ntrials=0)


def test_assoc_fit_matches_simulated_nll():
    params = _simulate_assoc_params(3, seed=5)
    sim = assoc_sim(params, nblocks=2, ntrials=20, seed=3)
    for s in range(3):
        nll = assoc_fit(assoc_norm(params[s]), sim["choices"][s], sim["rewards"][s], output="nll")
        assert nll == pytest.approx(sim["nll"][s].sum(), rel=1e-6)


def test_assoc_fit_single_block():
    params, rewards, choices = _example_block()
    x = assoc_norm([params["beta"], params["alpha"], params["V0"], params["eta"]])
    expected = -evaluate(params, rewards, Fit(choices)).log_likelihood
    assert assoc_fit(x, choices, rewards, output="nll") == pytest.approx(expected, rel=1e-6)


def test_assoc_fit_npl_adds_prior():
    _, rewards, choices = _example_block()
    x = np.array([0.1, -0.2, 0.3, 0.0])
    prior = GaussianPrior(mu=np.zeros(4), var=np.full(4, 2.0))
    nll = assoc_fit(x, choices, rewards, output="nll")
    npl = assoc_fit(x, choices, rewards, prior=prior)
    assert npl == pytest.approx(nll - prior.logpdf(x))


def test_assoc_fit_all_output():
    _, rewards, choices = _example_block()
    out = assoc_fit(np.zeros(4), choices, rewards, output="all")
    assert out["EV"].shape == (1, 2, 3)
    assert out["associability"].shape == (1, 2, 3)
    assert out["params"][0] == pytest.approx(10.0)
    np.testing.assert_allclose(out["params"][1:], 0.5)
    assert out["BIC"] == pytest.approx(4 * np.log(3) + 2 * out["nll"])


def test_assoc_fit_penalty_out_of_bounds():
    _, rewards, choices = _example_block()
    assert assoc_fit(np.array([-20.0, 0.0, 0.0, 0.0]), choices, rewards) == PENALTY


def test_assoc_fit_block_mismatch():
    _, rewards, choices = _example_block()
    with pytest.raises(ValueError):
        assoc_fit(np.zeros(4), np.stack([choices, choices]), rewards)


def test_assoc_norm_inverts_fit_transform():
    theta = np.array([4.0, 0.25, 0.6, 0.8])
    out = assoc_fit(assoc_norm(theta), [1], [[1.0], [0.0]], output="all")
    np.testing.assert_allclose(out["params"], theta)
    np.testing.assert_allclose(AssocParams.from_array(out["params"]).to_array(), theta)
