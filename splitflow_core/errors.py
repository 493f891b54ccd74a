"""
Error types raised while turning flow input into geometry.
"""

from __future__ import annotations


class FlowInputError(ValueError):
    """Base class for input the layout cannot turn into flow records."""


class InputShapeError(FlowInputError):
    """Recipients and allocations do not pair up one-to-one."""

    def __init__(self, n_recipients: int, n_allocations: int):
        self.n_recipients = n_recipients
        self.n_allocations = n_allocations
        super().__init__(
            f"Recipients and allocations must have the same length "
            f"(got {n_recipients} recipients, {n_allocations} allocations)"
        )


class AllocationValueError(FlowInputError):
    """An allocation is negative or not a finite number."""

    def __init__(self, index: int, value: object):
        self.index = index
        self.value = value
        super().__init__(f"Allocation {index} must be a finite non-negative number, got {value!r}")
