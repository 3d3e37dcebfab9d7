"""
Rank assignment for aggregated brand metrics.

Ranks inside one aggregation form a permutation 1..N: ties never share a
rank, they are broken by brand order (the brand seen first wins).
"""

from collections.abc import Sequence


def assign_ranks(
    values: Sequence[float],
    higher_is_better: bool = True,
    last: Sequence[bool] | None = None,
) -> list[int]:
    """
    Rank values 1..N, stable on input order.

    Args:
        values: Metric values in brand order
        higher_is_better: Sort descending if True, ascending otherwise
        last: Optional flags; flagged entries rank after all unflagged ones
            (used for brands never mentioned when lower is better)

    Returns:
        Rank of each value, aligned with the input

    Examples:
        >>> assign_ranks([40.0, 80.0, 40.0])
        [2, 1, 3]
        >>> assign_ranks([2.0, 0.0, 1.5], higher_is_better=False, last=[False, True, False])
        [2, 3, 1]
    """
    if last is not None and len(last) != len(values):
        raise ValueError(
            f"last must align with values ({len(last)} != {len(values)})"
        )

    def sort_key(index: int) -> tuple[bool, float]:
        value = values[index]
        flagged = bool(last[index]) if last is not None else False
        return flagged, -value if higher_is_better else value

    # sorted() is stable, so equal keys keep brand order
    order = sorted(range(len(values)), key=sort_key)

    ranks = [0] * len(values)
    for rank, index in enumerate(order, start=1):
        ranks[index] = rank
    return ranks


def rank_change(current: int, previous: int | None) -> int | None:
    """
    Current rank minus previous rank; None when there is no baseline.

    Negative means the brand moved up.

    Examples:
        >>> rank_change(1, 3)
        -2
        >>> rank_change(2, None) is None
        True
    """
    if previous is None:
        return None
    return current - previous
