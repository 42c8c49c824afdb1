"""
Index arithmetic shared by the scan engines.

Pure Python helpers computing the padded length and the number of tree levels
of a scan, and the block count of the shared-memory scan.

Author: B.G.
"""


def ilog2(n: int) -> int:
    """
    Floor of log2(n) for n >= 1.

    Example:
        ilog2(1) -> 0, ilog2(8) -> 3, ilog2(9) -> 3
    """
    if n < 1:
        raise ValueError(f"ilog2 undefined for {n}")
    return int(n).bit_length() - 1


def ilog2ceil(n: int) -> int:
    """
    Ceiling of log2(n) for n >= 1: the number of doubling levels of a scan
    over n elements.

    Example:
        ilog2ceil(1) -> 0, ilog2ceil(8) -> 3, ilog2ceil(9) -> 4
    """
    if n < 1:
        raise ValueError(f"ilog2ceil undefined for {n}")
    return int(n - 1).bit_length()


def next_pow2(n: int) -> int:
    """
    Smallest power of two >= n (1 for n <= 1).

    Example:
        next_pow2(5) -> 8, next_pow2(8) -> 8
    """
    if n <= 1:
        return 1
    return 1 << ilog2ceil(n)


def num_blocks(n: int, per_block: int) -> int:
    """Number of blocks of `per_block` elements needed to cover n elements."""
    return (n + per_block - 1) // per_block
