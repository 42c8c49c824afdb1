"""
LSD radix sort built on scan.

One round per key bit, least significant first. Round k partitions the keys
stably on bit k:
    b[i] = (key[i] >> k) & 1        e[i] = 1 - b[i]
    f = exclusive_scan(e)           totalFalse = f[n-1] + e[n-1]
    dest[i] = f[i]                      if b[i] == 0
    dest[i] = i - f[i] + totalFalse     if b[i] == 1
Keys are scattered into the second buffer of a ping-pong pair, whose roles
are swapped for the next round. Ties keep their input order because the scan
hands out increasing slots in encounter order within each partition.

Sign handling:
    By default keys are partitioned on their raw bits, which orders them as
    unsigned 32-bit patterns (negative keys land after the positive ones).
    signed_keys=True reverses the partition on the sign bit, giving the
    two's-complement order.

Author: B.G.
"""
import logging

import taichi as ti

from .. import constants as cte
from .. import pool
from .. import timing
from ..general_algorithms import PingPong, launch, read_scalar, sync
from ..scan import get_scan_device
from ..scan.common import as_keys, check_arguments

logger = logging.getLogger(__name__)


@ti.kernel
def compute_false_flags(keys: ti.template(), e: ti.template(), n: int, bit: int, invert: int):
    """
    e[i] = 1 when key i goes to the first partition of this round.

    Args:
        keys: Current keys
        e: Output flags
        n: Number of keys
        bit: Bit examined this round
        invert: 1 to send the set bits first (sign bit of signed keys)

    Author: B.G.
    """
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for i in range(n):
        b = (keys[i] >> bit) & 1
        if invert == 1:
            b = 1 - b
        e[i] = 1 - b


@ti.kernel
def scatter_by_bit(keys_in: ti.template(), keys_out: ti.template(), e: ti.template(), f: ti.template(), n: int, total_false: int):
    """
    Move every key to its stable partition slot.

    Author: B.G.
    """
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for i in range(n):
        dest = f[i]
        if e[i] == 0:
            dest = i - f[i] + total_false
        keys_out[dest] = keys_in[i]


class RadixSorter:
    """
    Radix sort as a state machine over the key bits.

    State: the next bit to process and the roles of the two key buffers.
    Transition (`step`): one exclusive scan plus one scatter, then the roles
    swap. Terminal state: every bit processed.

    Attributes:
        bit: Next bit to process, KEY_BITS when done
        pingpong: Key buffers, `pingpong.src` holds the current order
        n: Number of keys
        signed_keys: Two's-complement order when True

    Usage:
        sorter = RadixSorter(keys_a, keys_b, flags, slots, n, scan_device)
        while not sorter.done:
            sorter.step()
        sorted_keys = sorter.keys

    Author: B.G.
    """

    def __init__(self, keys, scratch_keys, flags, slots, n: int, scan_device, signed_keys: bool = False):
        """
        Args:
            keys: Field holding the keys to sort
            scratch_keys: Field of the same length receiving each round
            flags: Scratch field for the first-partition flags
            slots: Scratch field for the scanned flags
            n: Number of keys
            scan_device: Field-level exclusive scan
            signed_keys: Sort in two's-complement order

        Author: B.G.
        """
        self.pingpong = PingPong(keys, scratch_keys)
        self.flags = flags
        self.slots = slots
        self.n = n
        self.scan_device = scan_device
        self.signed_keys = signed_keys
        self.bit = 0

    @property
    def done(self) -> bool:
        return self.bit >= cte.KEY_BITS

    @property
    def keys(self):
        """Field holding the keys in their current order."""
        return self.pingpong.src

    def step(self):
        """
        Partition the keys on the next bit.

        Raises:
            RuntimeError: If every bit has already been processed

        Author: B.G.
        """
        if self.done:
            raise RuntimeError("Radix sort already finished")

        n = self.n
        invert = 1 if (self.signed_keys and self.bit == cte.KEY_BITS - 1) else 0

        launch(compute_false_flags, self.pingpong.src, self.flags, n, self.bit, invert)
        self.scan_device(self.flags, self.slots, n)
        total_false = read_scalar(self.slots, n - 1) + read_scalar(self.flags, n - 1)
        launch(scatter_by_bit, self.pingpong.src, self.pingpong.dst, self.flags, self.slots, n, total_false)

        self.pingpong.swap()
        self.bit += 1

    def run(self):
        """Process every remaining bit and return the sorted keys field."""
        while not self.done:
            self.step()
        return self.keys


def sort(n: int, odata, idata, method="efficient", signed_keys: bool = False):
    """
    Stable LSD radix sort of 32-bit keys on the device.

    Args:
        n: Number of keys (n <= 0 does nothing)
        odata: Host output array, at least n elements, filled in place
        idata: Host input array of 32-bit keys
        method: Scan engine, "naive", "efficient" or "shared"
        signed_keys: Order negative keys before positive ones. Default False
            orders the raw 32-bit patterns.

    Raises:
        ValueError: For invalid arguments or an unknown method
        DeviceAllocationError, DeviceExecutionError: On device failure

    Author: B.G.
    """
    scan_device = get_scan_device(method)
    n = check_arguments(n, odata, idata)
    if n <= 0:
        return

    with pool.upload(as_keys(idata, n)) as keys_a, \
            pool.scratch(ti.i32, n) as keys_b, \
            pool.scratch(ti.i32, n) as flags, \
            pool.scratch(ti.i32, n) as slots:
        with timing.gpu_timer():
            sorter = RadixSorter(keys_a.field, keys_b.field, flags.field, slots.field, n, scan_device, signed_keys)
            sorter.run()
            sync()
        result = (keys_b if sorter.pingpong.flipped else keys_a).to_numpy()

    logger.debug("Radix sorted %d keys in %d rounds", n, sorter.bit)
    odata[:n] = result
