"""
From-scratch tree ensemble used by the forecasters.

Modules
-------
rng     Seeded linear-congruential generator for bootstrap sampling.
tree    Variance-reduction regression tree (build, predict, depth).
forest  Bootstrap-aggregated forest of trees; mean-of-leaves prediction.
"""
