import numpy as np
from pyassoc import AssocParams, Fit, Simulate, evaluate, assoc_sim, assoc_fit, assoc_norm

# one block, observed choices
params = AssocParams(alpha=0.3, beta=2.0, V0=0.5, eta=0.5)
rewards = np.array([[1, 0, 1, 1, 0, 1],
                    [0, 1, 0, 0, 1, 0]])
out = evaluate(params, rewards, Fit([1, 2, 1, 1, 2, 1]))
print(out.to_frame().round(3))
print(f"log-likelihood: {out.log_likelihood:.4f}")

# same block, choices drawn from the model
sim = evaluate(params, rewards, Simulate(rng=2024))
print("simulated choices:", sim.sim_choices.astype(int))

# a small group on a reversal schedule
true_params = np.array([[5.0, 0.4, 0.5, 0.3],    # [beta, alpha, V0, eta]
                        [2.0, 0.2, 0.6, 0.7],
                        [8.0, 0.6, 0.4, 0.5]])
group = assoc_sim(true_params, nblocks=4, ntrials=40, seed=1, njobs=1)
for s, theta in enumerate(true_params):
    nll = assoc_fit(assoc_norm(theta), group["choices"][s], group["rewards"][s], output="nll")
    print(f"subject {s}: nll at true parameters = {nll:.2f}")
