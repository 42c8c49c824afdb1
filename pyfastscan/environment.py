"""
Environment initialization and management for PyFastScan.

Handles Taichi initialization, compile-time configuration of the block
geometry and resource resets. Kernels embed the constants of
`pyfastscan.constants` when they are first compiled, so the geometry must be
configured before the environment is initialised.

Author: B.G.
"""

import logging

import taichi as ti
from taichi.lang.impl import current_cfg

from . import constants as cte
from . import pool

logger = logging.getLogger(__name__)


def configure(block_size=None, log_num_banks=None, sync_after_dispatch=None):
	"""
	Change the compile-time block geometry and runtime flags.

	Args:
		block_size (int, optional): Threads per block, must be a power of two
		log_num_banks (int, optional): log2 of the number of shared memory banks
		sync_after_dispatch (bool, optional): Synchronise after every dispatch

	Raises:
		RuntimeError: If the geometry is changed after initialisation
		ValueError: If block_size is not a positive power of two

	Author: B.G.
	"""
	if (block_size is not None or log_num_banks is not None) and cte.INITIALISED:
		raise RuntimeError("Block geometry cannot change once PyFastScan is initialised")

	if block_size is not None:
		if block_size <= 0 or (block_size & (block_size - 1)) != 0:
			raise ValueError(f"block_size must be a positive power of two, got {block_size}")
		cte.BLOCK_SIZE = block_size

	if log_num_banks is not None:
		if log_num_banks < 0:
			raise ValueError(f"log_num_banks must be non-negative, got {log_num_banks}")
		cte.LOG_NUM_BANKS = log_num_banks

	if sync_after_dispatch is not None:
		cte.SYNC_AFTER_DISPATCH = bool(sync_after_dispatch)

	cte._derive()


def initialise(arch=ti.gpu, debug=False, **kwargs):
	"""
	Initialize the Taichi runtime used by every primitive.

	Args:
		arch: Taichi backend (ti.gpu, ti.cuda, ti.cpu, ...). Default: ti.gpu
		debug (bool): Enable Taichi bounds checking. Default: False
		**kwargs: Forwarded to ti.init

	Raises:
		RuntimeError: If already initialized

	Author: B.G.
	"""
	if(cte.INITIALISED):
		raise RuntimeError("PyFastScan already initialized")

	ti.init(arch=arch, debug=debug, **kwargs)
	logger.debug("Taichi initialised on %s (block size %d)", current_cfg().arch, cte.BLOCK_SIZE)

	# Mark as initialized
	cte.INITIALISED = True


def has_shared_memory():
	"""
	Whether the active backend exposes block shared memory and block barriers.

	Only CUDA supports ti.simt.block.SharedArray; every other backend runs
	the portable block-local scan.

	Author: B.G.
	"""
	return current_cfg().arch == ti.cuda


def reboot():
	"""
	Reset the Taichi environment.

	Clears all device memory, forgets pooled buffers and resets the state so
	the geometry can be reconfigured.

	Author: B.G.
	"""
	pool.bufpool.forget_all()
	ti.reset()
	cte.INITIALISED = False
