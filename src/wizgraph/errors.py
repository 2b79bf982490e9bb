"""
Exception taxonomy for wizgraph.

Structural problems and commands issued in the wrong state are raised.
Field validation failures are returned as data (see
validation.ValidationResult) and navigation dead ends are a step kind
(engine.StepKind.DEAD_END), so neither appears here.
"""


class WizardError(Exception):
    """Base class for all wizgraph errors."""
    pass


class StructuralError(WizardError):
    """Raised when a graph mutation or load would produce an invalid structure."""
    pass


class NodeNotFoundError(StructuralError):
    """Raised when an operation targets a node id that does not exist."""

    def __init__(self, node_id: str):
        super().__init__(f"Node {node_id} not found")
        self.node_id = node_id


class DuplicateNodeError(StructuralError):
    """Raised when a node id is added twice."""

    def __init__(self, node_id: str):
        super().__init__(f"Node {node_id} already exists")
        self.node_id = node_id


class UnsupportedSchemaVersionError(StructuralError):
    """Raised when a serialized graph was written by a newer schema."""
    pass


class NavigationError(WizardError):
    """Raised when a traversal command is not available in the current state."""
    pass


class FileCapturePendingError(WizardError):
    """Raised when advancing past a file node whose capture has not completed."""

    def __init__(self, node_id: str):
        super().__init__(f"File capture for node {node_id} is still pending")
        self.node_id = node_id
