"""
Variance-reduction regression tree.

Growing a node
--------------
1.  Stop and emit ``Leaf(mean(y))`` when the depth budget is spent, when the
    node holds fewer than ``min_samples_split`` rows, or when it is empty
    (an empty leaf predicts 0.0).
2.  For each feature column (in column order) enumerate candidate
    thresholds, ascending:

      ``midpoint``  midpoints between consecutive unique sorted values.
      ``linspace``  5 evenly spaced values from the column min to max
                    inclusive; the cheaper variant for long series.

3.  Rows with ``x <= threshold`` go left, the rest go right.  Splits with
    fewer than 2 rows on either side are rejected.
4.  Score = (n_left · MSE_left + n_right · MSE_right) / n, where MSE is the
    population variance of the side's targets.  The first candidate with the
    lowest score wins.
5.  No qualifying candidate → ``Leaf(mean(y))``.  Otherwise recurse on both
    sides with ``max_depth - 1`` and seeds ``seed * 2`` (left) and
    ``seed * 3`` (right).

Seeds
-----
The per-node seed drives optional feature subsampling (``max_features``).
Deriving child seeds deterministically from the parent makes a whole forest
a pure function of (data, root seed).  With ``max_features=None`` every
column is searched and the seed has no effect on the result.

Scoring uses running sums over the column sorted once per node; the sums are
taken about the node mean and the sum of squared errors is clamped at 0.0 to
absorb floating-point cancellation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from clinic_forecaster.ml.rng import LinearCongruentialGenerator
from clinic_forecaster.utils.numeric import mean

THRESHOLD_STRATEGIES: frozenset[str] = frozenset({"midpoint", "linspace"})
MIN_CHILD_SAMPLES = 2
LINSPACE_THRESHOLDS = 5

# Relative margin a later candidate must beat to replace the current best.
# Keeps "first minimal split wins" stable under float round-off.
_SCORE_RTOL = 1e-12


@dataclass(frozen=True)
class Leaf:
    """Terminal node predicting a constant."""

    value: float


@dataclass(frozen=True)
class Split:
    """Internal node: ``features[feature_index] <= threshold`` goes left."""

    feature_index: int
    threshold: float
    left: "TreeNode"
    right: "TreeNode"


TreeNode = Union[Leaf, Split]


@dataclass(frozen=True)
class _Candidate:
    feature_index: int
    threshold: float
    score: float


def build_tree(
    X: Sequence[Sequence[float]],
    y: Sequence[float],
    max_depth: int = 3,
    min_samples_split: int = 2,
    seed: int = 42,
    threshold_strategy: str = "midpoint",
    max_features: Optional[int] = None,
) -> TreeNode:
    """Grow a regression tree on ``(X, y)``.

    Args:
        X:                  Feature matrix, one row per sample.
        y:                  Targets, same length as ``X``.
        max_depth:          Maximum number of split levels (>= 0).
        min_samples_split:  Nodes with fewer rows become leaves.
        seed:               Root seed; children derive ``seed*2`` / ``seed*3``.
        threshold_strategy: ``"midpoint"`` or ``"linspace"``.
        max_features:       Columns searched per node; ``None`` searches all.

    Returns:
        The root ``TreeNode``.  Depth never exceeds ``max_depth``.

    Raises:
        ValueError: On mismatched ``X``/``y`` lengths, ragged rows, a negative
            ``max_depth`` or an unknown strategy.
    """
    if len(X) != len(y):
        raise ValueError(f"X and y must have the same length, got {len(X)} and {len(y)}.")
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}.")
    if threshold_strategy not in THRESHOLD_STRATEGIES:
        raise ValueError(
            f"threshold_strategy must be one of {sorted(THRESHOLD_STRATEGIES)}, "
            f"got '{threshold_strategy}'."
        )
    if max_features is not None and max_features < 1:
        raise ValueError(f"max_features must be >= 1, got {max_features}.")
    if X and any(len(row) != len(X[0]) for row in X):
        raise ValueError("All rows of X must have the same length.")

    return _grow(
        [list(row) for row in X],
        [float(v) for v in y],
        max_depth,
        min_samples_split,
        seed,
        threshold_strategy,
        max_features,
    )


def predict_tree(node: TreeNode, features: Sequence[float]) -> float:
    """Route ``features`` to a leaf and return its value."""
    while isinstance(node, Split):
        node = node.left if features[node.feature_index] <= node.threshold else node.right
    return node.value


def tree_depth(node: TreeNode) -> int:
    """Number of split levels on the longest root-to-leaf path (a leaf is 0)."""
    if isinstance(node, Leaf):
        return 0
    return 1 + max(tree_depth(node.left), tree_depth(node.right))


def count_leaves(node: TreeNode) -> int:
    if isinstance(node, Leaf):
        return 1
    return count_leaves(node.left) + count_leaves(node.right)


# ── Internal helpers ───────────────────────────────────────────────────────────


def _grow(
    X: list[list[float]],
    y: list[float],
    depth: int,
    min_samples_split: int,
    seed: int,
    strategy: str,
    max_features: Optional[int],
) -> TreeNode:
    if depth == 0 or not y or len(y) < min_samples_split:
        return Leaf(mean(y))

    columns = _candidate_columns(len(X[0]), seed, max_features)
    best = _best_split(X, y, columns, strategy)
    if best is None:
        return Leaf(mean(y))

    left_X: list[list[float]] = []
    left_y: list[float] = []
    right_X: list[list[float]] = []
    right_y: list[float] = []
    for row, target in zip(X, y):
        if row[best.feature_index] <= best.threshold:
            left_X.append(row)
            left_y.append(target)
        else:
            right_X.append(row)
            right_y.append(target)

    if not left_y or not right_y:
        return Leaf(mean(y))

    return Split(
        feature_index=best.feature_index,
        threshold=best.threshold,
        left=_grow(left_X, left_y, depth - 1, min_samples_split, seed * 2, strategy, max_features),
        right=_grow(right_X, right_y, depth - 1, min_samples_split, seed * 3, strategy, max_features),
    )


def _candidate_columns(n_features: int, seed: int, max_features: Optional[int]) -> list[int]:
    if max_features is None or max_features >= n_features:
        return list(range(n_features))
    return LinearCongruentialGenerator(seed).sample_indices(n_features, max_features)


def _best_split(
    X: list[list[float]],
    y: list[float],
    columns: list[int],
    strategy: str,
) -> Optional[_Candidate]:
    n = len(y)
    if n < 2 * MIN_CHILD_SAMPLES:
        return None

    y_mean = mean(y)
    centered = [v - y_mean for v in y]

    best: Optional[_Candidate] = None
    for f in columns:
        column = [row[f] for row in X]
        if strategy == "midpoint":
            candidates = _midpoint_candidates(column, centered)
        else:
            candidates = _linspace_candidates(column, centered)
        for threshold, score in candidates:
            if best is None or _improves(score, best.score):
                best = _Candidate(feature_index=f, threshold=threshold, score=score)
    return best


def _midpoint_candidates(
    column: list[float],
    centered: list[float],
) -> list[tuple[float, float]]:
    """(threshold, score) for every qualifying midpoint, ascending."""
    n = len(column)
    order = sorted(range(n), key=column.__getitem__)
    total_sum = sum(centered)
    total_sq = sum(v * v for v in centered)

    out: list[tuple[float, float]] = []
    left_sum = 0.0
    left_sq = 0.0
    for k in range(n - 1):
        t = centered[order[k]]
        left_sum += t
        left_sq += t * t
        value = column[order[k]]
        next_value = column[order[k + 1]]
        if next_value == value:
            continue
        n_left = k + 1
        n_right = n - n_left
        if n_left < MIN_CHILD_SAMPLES or n_right < MIN_CHILD_SAMPLES:
            continue
        sse = _sse(left_sum, left_sq, n_left) + _sse(
            total_sum - left_sum, total_sq - left_sq, n_right
        )
        out.append(((value + next_value) / 2, sse / n))
    return out


def _linspace_candidates(
    column: list[float],
    centered: list[float],
) -> list[tuple[float, float]]:
    """(threshold, score) for each evenly spaced threshold that qualifies."""
    n = len(column)
    lo, hi = min(column), max(column)
    out: list[tuple[float, float]] = []
    for k in range(LINSPACE_THRESHOLDS):
        threshold = lo + (k / (LINSPACE_THRESHOLDS - 1)) * (hi - lo)
        left = [t for x, t in zip(column, centered) if x <= threshold]
        right = [t for x, t in zip(column, centered) if x > threshold]
        if len(left) < MIN_CHILD_SAMPLES or len(right) < MIN_CHILD_SAMPLES:
            continue
        sse = _sse(sum(left), sum(v * v for v in left), len(left)) + _sse(
            sum(right), sum(v * v for v in right), len(right)
        )
        out.append((threshold, sse / n))
    return out


def _sse(total: float, total_sq: float, count: int) -> float:
    """Sum of squared errors about the group mean from running sums."""
    return max(0.0, total_sq - total * total / count)


def _improves(score: float, best_score: float) -> bool:
    return score < best_score - _SCORE_RTOL * abs(best_score)
