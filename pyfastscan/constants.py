"""
Global constants and configuration parameters for PyFastScan.

This module defines the compile-time constants used by every scan, compaction
and sort kernel. Constants are centralised here so the block geometry seen by
the shared-memory scan, the bank-conflict offsets and the size limits stay
consistent across all GPU kernels.

Performance Note:
Compile-time constants are embedded in Taichi kernels during compilation.
Changing them after the first kernel has been compiled has no effect on the
already compiled kernels, which is why `environment.configure` refuses to run
once the environment is initialised.

Constant Categories:
- Block Constants: threads per block, elements per block, shared memory size
- Bank Constants: number of memory banks used by the conflict-free offsets
- Limits: largest supported array length
- Runtime Flags: post-dispatch synchronisation

Usage:
    import pyfastscan.constants as cte

    # Constants are automatically available in Taichi kernels
    @ti.kernel
    def my_kernel(n: int):
        for i in range(n):
            block = i // cte.ELEMENTS_PER_BLOCK

Author: B.G.
"""

#########################################
###### UTILS CONSTANTS ##################
#########################################

INITIALISED = False


#########################################
###### BLOCK CONSTANTS ##################
#########################################

# Number of cooperating threads per block in the shared-memory scan
# Compile-time constant: sets the loop block_dim and the shared array size
BLOCK_SIZE = 128

# Each thread of a block loads two elements
ELEMENTS_PER_BLOCK = 2 * BLOCK_SIZE

# log2 of the number of shared memory banks (32 banks on every CUDA device)
LOG_NUM_BANKS = 5

# Shared memory length per block: one padding slot every 2^LOG_NUM_BANKS elements
SHARED_SIZE = ELEMENTS_PER_BLOCK + (ELEMENTS_PER_BLOCK >> LOG_NUM_BANKS)


#########################################
###### LIMITS ###########################
#########################################

# Largest array length accepted by the primitives.
# next_pow2(MAX_LENGTH) == MAX_LENGTH < 2^31, so every tree index fits in i32
MAX_LENGTH = 1 << 30

# Number of bits in a key, one radix sort round per bit
KEY_BITS = 32

# Idle device buffers the pool keeps for reuse. Beyond this, the idle buffers
# of the least recently requested shapes are destroyed before a new allocation
POOL_MAX_IDLE = 32


#########################################
###### RUNTIME FLAGS ####################
#########################################

# Synchronise the device after each dispatch so that asynchronous faults are
# reported by the dispatch that caused them (slower, useful on GPU backends)
SYNC_AFTER_DISPATCH = False


def _derive():
    """
    Recompute the constants that depend on BLOCK_SIZE and LOG_NUM_BANKS.

    Author: B.G.
    """
    global ELEMENTS_PER_BLOCK, SHARED_SIZE
    ELEMENTS_PER_BLOCK = 2 * BLOCK_SIZE
    SHARED_SIZE = ELEMENTS_PER_BLOCK + (ELEMENTS_PER_BLOCK >> LOG_NUM_BANKS)
