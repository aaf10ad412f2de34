"""Longest Common Subsequence matching over identifier sequences.

Uses the standard dynamic-programming LCS algorithm to find the longest
run of identifiers that keep their relative order between the old and
the new sequence.  Matched identifiers stay where they are; everything
else that survives has to move.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence


def lcs_match(
    old_ids: Sequence[Hashable],
    new_ids: Sequence[Hashable],
) -> list[tuple[int, int]]:
    """Compute LCS-based matched pairs between two identifier sequences.

    When several subsequences have the maximal length, the backtrack
    keeps the elements that come late in *old_ids*.  For ``[1, 2, 3]`` against
    ``[1, 3, 2]`` that keeps ``1`` and ``3`` and leaves ``2`` as the single
    element that moves.  The choice depends only on the two sequences, so
    equal inputs always give equal pairs.

    Parameters
    ----------
    old_ids:
        Identifiers in their current order.
    new_ids:
        Identifiers in their desired order.

    Returns
    -------
    list[tuple[int, int]]
        ``(old_idx, new_idx)`` pairs of matched identifiers, ascending in
        both indices.
    """
    m = len(old_ids)
    n = len(new_ids)

    if m == 0 or n == 0:
        return []

    # dp[i][j] stores the length of the LCS of old_ids[:i] and new_ids[:j].
    dp: list[list[int]] = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if old_ids[i - 1] == new_ids[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    # Backtrack to recover the actual matched pairs.
    pairs: list[tuple[int, int]] = []
    i, j = m, n
    while i > 0 and j > 0:
        if old_ids[i - 1] == new_ids[j - 1]:
            pairs.append((i - 1, j - 1))
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1

    pairs.reverse()
    return pairs
