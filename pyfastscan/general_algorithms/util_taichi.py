"""
Utility kernels for Taichi buffer operations.

Provides the copy, shift and offset kernels shared by the scan, compaction
and sort engines.

Author: B.G.
"""

import taichi as ti


#########################################
###### COPY, SHIFT AND STUFF ############
#########################################


@ti.kernel
def copy_range(src: ti.template(), dst: ti.template(), n: int):
    """
    Copy the first n elements of src into dst.

    Used to load an array into a padded scan buffer (whose padding is already
    zero) and to copy the meaningful prefix of a padded result back.

    Args:
        src: Source array
        dst: Destination array (at least n elements)
        n: Number of elements to copy

    Author: B.G.
    """
    for i in range(n):
        dst[i] = src[i]


@ti.kernel
def set_zero(data: ti.template(), index: int):
    """
    Set a specific array element to zero.

    Clears the root of the sum tree between the up-sweep and the down-sweep,
    which turns the tree into an exclusive scan.

    Author: B.G.
    """
    data[index] = 0


@ti.kernel
def shift_right(src: ti.template(), dst: ti.template(), n: int):
    """
    dst[0] = 0, dst[i] = src[i-1]: an inclusive scan of dst is the exclusive
    scan of src.

    Author: B.G.
    """
    for i in range(n):
        if i == 0:
            dst[i] = 0
        else:
            dst[i] = src[i - 1]


@ti.kernel
def add_block_offsets(data: ti.template(), offsets: ti.template(), n: int, per_block: int):
    """
    Add to every element the offset of the block it belongs to.

    Args:
        data: Block-wise scanned array (modified in-place)
        offsets: Exclusive scan of the block totals, one entry per block
        n: Number of valid elements in data
        per_block: Elements per block

    Author: B.G.
    """
    for i in range(n):
        data[i] += offsets[i // per_block]
