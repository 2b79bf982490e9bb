"""
wizgraph — graph-defined multi-step form wizards.

A wizard is a directed graph of typed steps (nodes) joined by typed edges
(connections). This package holds the graph model and runs it as a guided,
one-question-at-a-time form.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Canvas layout or drawing
    - HTML templating or widgets
    - Storage backends

Renderers drive a run through the Wizard / TraversalEngine handle and read
what to show from StepView. Everything else stays outside.
"""

from wizgraph.config import WizardOptions
from wizgraph.engine import AdvanceResult, StepKind, StepView, TraversalEngine
from wizgraph.errors import (
    DuplicateNodeError,
    FileCapturePendingError,
    NavigationError,
    NodeNotFoundError,
    StructuralError,
    UnsupportedSchemaVersionError,
    WizardError,
)
from wizgraph.model import (
    FINAL_CONFIRMATION_ID,
    START_NODE_ID,
    Connection,
    FileValue,
    FromType,
    Node,
    NodeAttributes,
    NodeOption,
    NodeType,
    ValidatorKey,
)
from wizgraph.wizard import Wizard

__version__ = "0.1.0"
