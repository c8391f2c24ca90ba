"""
Bootstrap-aggregated forest of variance-reduction trees.

Each tree is grown on ``len(X)`` rows drawn with replacement by a single
``LinearCongruentialGenerator`` seeded with the forest seed.  Tree ``i`` gets
its own node seed ``seed + i * 1000``.  Prediction is the arithmetic mean of
the trees' leaf values.

Every forecasting call site uses seed 42 so that two calls on the same
series build identical forests.  A forest is rebuilt per call and never
cached.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from clinic_forecaster.ml.rng import LinearCongruentialGenerator
from clinic_forecaster.ml.tree import TreeNode, build_tree, predict_tree

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42
DEFAULT_NUM_TREES = 10
LIGHT_NUM_TREES = 5
TREE_MAX_DEPTH = 3
TREE_MIN_SAMPLES_SPLIT = 2
TREE_SEED_STRIDE = 1000

Forest = tuple[TreeNode, ...]


def build_forest(
    X: Sequence[Sequence[float]],
    y: Sequence[float],
    num_trees: int = DEFAULT_NUM_TREES,
    seed: int = DEFAULT_SEED,
    max_depth: int = TREE_MAX_DEPTH,
    min_samples_split: int = TREE_MIN_SAMPLES_SPLIT,
    threshold_strategy: str = "midpoint",
    max_features: Optional[int] = None,
) -> Forest:
    """Fit ``num_trees`` trees on bootstrap resamples of ``(X, y)``.

    Args:
        X, y:              Training set (see ``extract_features``).
        num_trees:         Ensemble size (>= 1).
        seed:              Seed for the bootstrap generator and tree seeds.
        max_depth:         Per-tree depth limit.
        min_samples_split: Per-tree leaf threshold.
        threshold_strategy, max_features: Passed through to ``build_tree``.

    Returns:
        An immutable tuple of tree roots.

    Raises:
        ValueError: If ``X`` is empty, lengths differ, or ``num_trees < 1``.
    """
    if num_trees < 1:
        raise ValueError(f"num_trees must be >= 1, got {num_trees}.")
    if len(X) != len(y):
        raise ValueError(f"X and y must have the same length, got {len(X)} and {len(y)}.")
    if not X:
        raise ValueError("Cannot build a forest from an empty training set.")

    rng = LinearCongruentialGenerator(seed)
    n = len(X)
    trees: list[TreeNode] = []
    for i in range(num_trees):
        indices = [rng.randrange(n) for _ in range(n)]
        trees.append(
            build_tree(
                [X[j] for j in indices],
                [y[j] for j in indices],
                max_depth=max_depth,
                min_samples_split=min_samples_split,
                seed=seed + i * TREE_SEED_STRIDE,
                threshold_strategy=threshold_strategy,
                max_features=max_features,
            )
        )

    logger.debug(
        "Built forest: trees=%d rows=%d features=%d seed=%d strategy=%s",
        num_trees, n, len(X[0]), seed, threshold_strategy,
    )
    return tuple(trees)


def predict_forest(forest: Forest, features: Sequence[float]) -> float:
    """Mean of every tree's prediction for ``features``."""
    if not forest:
        raise ValueError("Cannot predict with an empty forest.")
    return sum(predict_tree(tree, features) for tree in forest) / len(forest)
