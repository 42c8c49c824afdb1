"""
Checked kernel dispatch.

Every kernel of the engines is launched through `launch`, which is the
post-dispatch error check: a Taichi runtime failure raised at launch, or at
the device synchronisation when SYNC_AFTER_DISPATCH is set, aborts the calling
primitive with a DeviceExecutionError. Compilation and type errors are not
translated, they are programming errors.

Author: B.G.
"""

import logging

import taichi as ti

from .. import constants as cte
from ..errors import DeviceExecutionError

logger = logging.getLogger(__name__)


def kernel_name(kernel) -> str:
    return getattr(kernel, "__name__", repr(kernel))


def launch(kernel, *args):
    """
    Dispatch a kernel and check it for errors.

    Args:
        kernel: Taichi kernel to run
        *args: Kernel arguments

    Raises:
        DeviceExecutionError: If the dispatch fails

    Author: B.G.
    """
    try:
        kernel(*args)
        if cte.SYNC_AFTER_DISPATCH:
            ti.sync()
    except RuntimeError as e:
        name = kernel_name(kernel)
        logger.debug("Dispatch of %s failed: %s", name, e)
        raise DeviceExecutionError(name, e) from e


def sync():
    """
    Wait for every dispatch issued so far, reporting deferred failures.

    Raises:
        DeviceExecutionError: If a pending dispatch failed

    Author: B.G.
    """
    try:
        ti.sync()
    except RuntimeError as e:
        raise DeviceExecutionError("sync", e) from e


def read_scalar(field, index):
    """
    Read one element of a device field from the host, with the same check.

    Author: B.G.
    """
    try:
        return int(field[index])
    except RuntimeError as e:
        raise DeviceExecutionError("read_scalar", e) from e
