"""
Error types raised by the PyFastScan primitives.

Device-side failures are always surfaced to the caller of the primitive.
A failed operation raises one of the exceptions below, which keeps it
distinct from a valid empty result (an empty scan or a count of zero).

- PrimitiveError: base class, subclass of RuntimeError
- DeviceAllocationError: a device buffer could not be allocated
- DeviceExecutionError: a kernel dispatch failed at launch or at its check

Invalid arguments raise ValueError before anything is allocated.

Author: B.G.
"""


class PrimitiveError(RuntimeError):
    """Base class of every device-side failure of a scan, compaction or sort."""


class DeviceAllocationError(PrimitiveError):
    """
    Raised when a device buffer cannot be allocated.

    Attributes:
        dtype: Taichi data type that was requested
        shape: Shape that was requested
    """

    def __init__(self, dtype, shape, cause=None):
        self.dtype = dtype
        self.shape = shape
        msg = f"Could not allocate device buffer dtype:{dtype} shape:{shape}"
        if cause is not None:
            msg += f" ({cause})"
        super().__init__(msg)


class DeviceExecutionError(PrimitiveError):
    """
    Raised when a kernel dispatch fails.

    Attributes:
        kernel: Name of the kernel whose dispatch failed
    """

    def __init__(self, kernel, cause=None):
        self.kernel = kernel
        msg = f"Dispatch of kernel '{kernel}' failed"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
