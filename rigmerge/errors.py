"""Exception hierarchy for planning and applying clothing merges."""


class RigMergeError(Exception):
    """Base exception for rigmerge operations."""


class InvalidInput(RigMergeError):
    """Raised when merge inputs are unusable (identical roots, missing handles, bad documents)."""


class StaleHandleError(RigMergeError):
    """Raised when a node handle refers to a node that no longer exists."""

    def __init__(self, handle):
        super().__init__(f"Node handle {handle!r} is not in the scene (deleted or never created)")
        self.handle = handle


class CycleError(RigMergeError):
    """Raised when a re-parent would make a node its own ancestor."""

    def __init__(self, node, new_parent):
        super().__init__(f"Cannot parent node {node} under {new_parent}: it would create a cycle")
        self.node = node
        self.new_parent = new_parent


class InternalInconsistency(RigMergeError):
    """Raised when a live model disagrees with the plan that was derived from it."""


class PlanExecutionError(InternalInconsistency):
    """Raised when an operation fails partway through a plan.

    Operations before ``index`` have been applied and are not rolled back.
    """

    def __init__(self, applied: int, index: int, operation, cause: Exception):
        super().__init__(
            f"Operation {index} ({operation}) failed after {applied} applied operation(s): {cause}"
        )
        self.applied = applied
        self.index = index
        self.operation = operation
        self.cause = cause
