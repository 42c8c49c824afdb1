"""
Ping-Pong Buffer Management

This module provides the double buffer used by iterative passes where reading
from and writing to the same buffer would race: the naive scan levels and the
radix sort rounds. One buffer is the source of a dispatch, the other its
destination, and the roles are swapped after every pass so no dispatch ever
reads and writes the same memory.

The PingPong object does not own memory: the two buffers are acquired (and
released) by the caller's scope, the object only tracks their roles.

Author: B. Gailleton
"""


class PingPong:
    """
    Two device buffers with explicit source/destination roles.

    Attributes:
        src: Field read by the next dispatch
        dst: Field written by the next dispatch
        swaps: Number of role exchanges so far

    Usage:
        with pool.scratch(ti.i32, n) as a, pool.scratch(ti.i32, n) as b:
            pp = PingPong(a.field, b.field)
            for level in range(levels):
                step_kernel(pp.src, pp.dst, n)
                pp.swap()
            result = pp.src  # last written buffer

    Author: B. Gailleton
    """

    def __init__(self, first, second):
        if first is second:
            raise ValueError("PingPong buffers must be distinct")
        self.src = first
        self.dst = second
        self.swaps = 0

    def swap(self):
        """
        Exchange the roles: the buffer just written becomes the next source.

        Author: B. Gailleton
        """
        self.src, self.dst = self.dst, self.src
        self.swaps += 1

    @property
    def flipped(self) -> bool:
        """True when the current source is the second buffer."""
        return self.swaps % 2 == 1
