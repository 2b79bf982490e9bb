"""
Traversal Engine — the step-execution state machine.

States are node ids plus the synthetic final confirmation step
(FINAL_CONFIRMATION_ID). A run:

    start ──output──▶ first rendered node ──advance──▶ ... ──▶ confirmation ──submit──▶ done

Rules:
    - start nodes are never rendered; they resolve through their output
      edge, or to the confirmation step when they have none
    - hidden nodes are never rendered; they store their value and resolve
      through their output edge, or park the run in a DEAD_END state
    - every other node is rendered; on its first forward visit its default
      answer is seeded and its id pushed onto the history
    - advance() validates, commits and resolves the next node by type
    - retreat() unwinds the history without validation

The graph may contain cycles. Auto-resolving nodes (start, hidden) are
walked with a per-step visited set; meeting one twice in a single
resolution is a dead end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from wizgraph.answers import AnswerStore, AnswerValue, hidden_value
from wizgraph.errors import FileCapturePendingError, NavigationError, NodeNotFoundError
from wizgraph.model import (
    FINAL_CONFIRMATION_ID,
    FileValue,
    FromType,
    Node,
    NodeOption,
    NodeType,
    START_NODE_ID,
)
from wizgraph.progress import ProgressProjector, ProgressStep
from wizgraph.serialization import file_value_from_dict
from wizgraph.store import ConnectionStore, NodeStore
from wizgraph.summary import SummaryItem, build_summary
from wizgraph.validation import ValidationEngine

logger = logging.getLogger(__name__)

SELECT_OPTION_MESSAGE = "Please select an option"

UNSET = object()


class StepKind(str, Enum):
    IDLE = "idle"                  # run not started
    NODE = "node"                  # a rendered node
    CONFIRMATION = "confirmation"  # review-and-submit step
    DEAD_END = "dead_end"          # hidden node without a way forward
    SUBMITTED = "submitted"        # run finalised


@dataclass
class Progress:
    index: int = -1
    path: List[ProgressStep] = field(default_factory=list)


@dataclass
class StepView:
    """
    What a renderer should show for the current state.

    Properties:
        kind: StepKind of the state
        node: rendered node (NODE), or the hidden node that dead-ended
        value: stored answer of the rendered node
        progress: projected progress, empty when the tracker is disabled
        can_go_back: whether retreat() would move to an earlier step
        summary: answered fields, only on the confirmation step
    """

    kind: StepKind
    node: Optional[Node] = None
    value: AnswerValue = None
    progress: Progress = field(default_factory=Progress)
    can_go_back: bool = False
    summary: List[SummaryItem] = field(default_factory=list)


@dataclass
class AdvanceResult:
    advanced: bool
    errors: List[str] = field(default_factory=list)
    step: Optional[StepView] = None


def coerce_answer(node: Node, raw: Any) -> AnswerValue:
    """Convert a renderer-supplied value into the node type's answer shape."""
    if node.type == NodeType.CHECKBOX:
        if raw is None or raw == "":
            return []
        if isinstance(raw, (list, tuple, set)):
            return [str(item) for item in raw]
        return [str(raw)]

    if node.type == NodeType.FILE:
        if raw is None or raw == "" or isinstance(raw, FileValue):
            return raw or None
        if isinstance(raw, dict):
            return file_value_from_dict(raw)
        return FileValue(base64=str(raw))

    if raw is None:
        return ""
    return str(raw)


class TraversalEngine:
    """
    Executes a wizard graph one step at a time.

    The engine is an explicit handle: renderers keep a reference to it and
    call current_step(), set_value(), advance(), retreat() and submit().
    """

    def __init__(
        self,
        nodes: NodeStore,
        connections: ConnectionStore,
        answers: Optional[AnswerStore] = None,
        validator: Optional[ValidationEngine] = None,
        show_progress_tracker: bool = True,
        on_submit: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        self.nodes = nodes
        self.connections = connections
        self.answers = answers if answers is not None else AnswerStore()
        self.validator = validator or ValidationEngine()
        self.projector = ProgressProjector(nodes, connections)
        self.show_progress_tracker = show_progress_tracker
        self.on_submit = on_submit

        self.history: List[str] = []
        self._current: Optional[str] = None
        self._kind = StepKind.IDLE
        self._progress_path: Optional[List[ProgressStep]] = None
        self._pending_files: Set[str] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Forget history, answers and progress. The graph is untouched."""
        self.history.clear()
        self.answers.clear()
        self._current = None
        self._kind = StepKind.IDLE
        self._progress_path = None
        self._pending_files.clear()
        logger.info("Traversal reset")

    def start(self) -> StepView:
        """
        Begin a run at the start node.

        Without a start node the run begins at the first non-start node; an
        empty graph goes straight to the confirmation step.
        """
        self.reset()
        start = self._start_node()
        if start is not None:
            return self.execute_step(start.id)

        for node in self.nodes.get_all_nodes():
            if not node.is_start:
                logger.warning("No start node; starting at %s", node.id)
                return self.execute_step(node.id)

        logger.warning("Empty graph; going to confirmation")
        return self.execute_step(FINAL_CONFIRMATION_ID)

    # ------------------------------------------------------------------
    # Step execution
    # ------------------------------------------------------------------

    def execute_step(self, node_id: str, from_back: bool = False) -> StepView:
        """
        Enter ``node_id``.

        Forward entries (``from_back=False``) seed defaults and grow the
        history. Backward entries re-render without either.

        Raises:
            NodeNotFoundError: if ``node_id`` is neither a node nor the
                confirmation step
        """
        if node_id != FINAL_CONFIRMATION_ID and not self.nodes.has_node(node_id):
            raise NodeNotFoundError(node_id)
        return self._enter(node_id, from_back)

    def _enter(self, node_id: str, from_back: bool) -> StepView:
        visited: Set[str] = set()

        while True:
            if node_id == FINAL_CONFIRMATION_ID:
                return self._show_confirmation(from_back)

            node = self.nodes.get_node(node_id)
            if node is None:
                logger.warning("Connection leads to missing node %s", node_id)
                return self._dead_end(node_id)

            if node_id in visited:
                logger.warning("Cycle through auto-resolving node %s", node_id)
                return self._dead_end(node_id)
            visited.add(node_id)

            if node.is_start:
                if not from_back:
                    self.history.append(node.id)
                node_id = self._output_target(node) or FINAL_CONFIRMATION_ID
                continue

            if node.type == NodeType.HIDDEN:
                self.answers.set(node.id, hidden_value(node))
                target = self._output_target(node)
                if target is None:
                    logger.warning("Hidden node %s has no output connection", node.id)
                    return self._dead_end(node.id)
                node_id = target
                continue

            if not from_back:
                self.answers.seed_default(node)
                self.history.append(node.id)

            self._current = node.id
            self._kind = StepKind.NODE
            logger.debug("Rendering node %s (back=%s)", node.id, from_back)
            return self.current_step()

    def _show_confirmation(self, from_back: bool) -> StepView:
        if not from_back:
            self.history.append(FINAL_CONFIRMATION_ID)
        self._current = FINAL_CONFIRMATION_ID
        self._kind = StepKind.CONFIRMATION
        logger.debug("Rendering final confirmation")
        return self.current_step()

    def _dead_end(self, node_id: str) -> StepView:
        self._current = node_id
        self._kind = StepKind.DEAD_END
        return self.current_step()

    def _start_node(self) -> Optional[Node]:
        if self.nodes.has_node(START_NODE_ID):
            return self.nodes.get_node(START_NODE_ID)
        for node in self.nodes.get_all_nodes():
            if node.type == NodeType.START:
                return node
        return None

    def _output_target(self, node: Node) -> Optional[str]:
        outgoing = self.connections.get_connections_from(node.id, FromType.OUTPUT)
        return outgoing[0].to_node if outgoing else None

    # ------------------------------------------------------------------
    # Renderer boundary
    # ------------------------------------------------------------------

    @property
    def kind(self) -> StepKind:
        return self._kind

    def current_node(self) -> Optional[Node]:
        """The rendered node, or None outside the NODE state."""
        if self._kind != StepKind.NODE:
            return None
        return self.nodes.get_node(self._current)

    def current_step(self) -> StepView:
        node = None
        if self._kind in (StepKind.NODE, StepKind.DEAD_END) and self.nodes.has_node(self._current):
            node = self.nodes.get_node(self._current)

        view = StepView(kind=self._kind, node=node, can_go_back=self.can_go_back())
        if self._kind == StepKind.NODE and node is not None:
            view.value = self.answers.get(node.id)
        if self.show_progress_tracker and self._kind == StepKind.NODE:
            view.progress = self.progress()
        if self._kind in (StepKind.CONFIRMATION, StepKind.SUBMITTED):
            view.summary = self.summary()
        return view

    def progress(self) -> Progress:
        """Projected path (computed once per run) and the current index on it."""
        if self._progress_path is None:
            self._progress_path = self.projector.get_progress_path()
        index = -1
        if self._kind == StepKind.NODE:
            index = self.projector.get_current_step_index(self._current, self._progress_path)
        return Progress(index=index, path=list(self._progress_path))

    def summary(self) -> List[SummaryItem]:
        return build_summary(self.nodes.get_all_nodes(), self.answers)

    def is_terminal(self) -> bool:
        """True on the confirmation step and after submit."""
        return self._kind in (StepKind.CONFIRMATION, StepKind.SUBMITTED)

    def is_submitted(self) -> bool:
        return self._kind == StepKind.SUBMITTED

    def can_go_back(self) -> bool:
        if self._kind in (StepKind.IDLE, StepKind.SUBMITTED):
            return False
        steps = [
            entry for entry in self.history
            if entry == FINAL_CONFIRMATION_ID
            or (self.nodes.has_node(entry) and not self.nodes.get_node(entry).is_start)
        ]
        if self._kind == StepKind.DEAD_END:
            return bool(steps)
        return len(steps) > 1

    def set_value(self, raw_value: Any) -> AnswerValue:
        """Store a live value for the rendered node without advancing."""
        node = self._require_node()
        value = coerce_answer(node, raw_value)
        self.answers.set(node.id, value)
        return value

    def toggle_option(self, option_value: str) -> List[str]:
        """Check or uncheck one option of the rendered checkbox node."""
        node = self._require_node()
        if node.type != NodeType.CHECKBOX:
            raise NavigationError(f"Node {node.id} is not a checkbox node")

        current = list(self.answers.get(node.id) or [])
        if option_value in current:
            current.remove(option_value)
        else:
            current.append(option_value)

        # Checked values follow option order
        known = [option.value for option in node.options]
        selected = [value for value in known if value in current]
        selected += [value for value in current if value not in known]
        self.answers.set(node.id, selected)
        return selected

    def _require_node(self) -> Node:
        node = self.current_node()
        if node is None:
            raise NavigationError(f"No rendered node in state {self._kind.value}")
        return node

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self, raw_value: Any = UNSET) -> AdvanceResult:
        """
        Validate, commit and move forward.

        ``raw_value`` is the value read from the renderer's widgets. When
        omitted the stored answer is used (see set_value).

        Returns:
            AdvanceResult; on validation failure ``advanced`` is False,
            ``errors`` lists the messages and the state is unchanged

        Raises:
            NavigationError: outside the NODE state
            FileCapturePendingError: on a file node still being captured
        """
        node = self._require_node()
        if node.type == NodeType.FILE and node.id in self._pending_files:
            raise FileCapturePendingError(node.id)

        if raw_value is UNSET:
            value = coerce_answer(node, self.answers.get(node.id))
        else:
            value = coerce_answer(node, raw_value)

        result = self.validator.validate_node(node, value)
        if not result.is_valid:
            return AdvanceResult(advanced=False, errors=result.errors, step=self.current_step())

        self.answers.set(node.id, value)

        target = self._resolve_next(node, value)
        if target is None:
            return AdvanceResult(advanced=False, errors=[SELECT_OPTION_MESSAGE], step=self.current_step())

        logger.debug("Advancing from %s to %s", node.id, target)
        return AdvanceResult(advanced=True, step=self._enter(target, from_back=False))

    def _resolve_next(self, node: Node, value: AnswerValue) -> Optional[str]:
        """
        Next state id after ``node``, or None when a selection is required.

        select/radio: an output edge wins over option edges; otherwise the
        option edge at the selected index, else the confirmation step.
        Everything else (checkbox included): output edge, else confirmation.
        """
        general = self._output_target(node)

        if node.type in (NodeType.SELECT, NodeType.RADIO):
            if general is not None:
                return general
            index = node.option_index(value)
            if index < 0:
                return None
            branches = self.connections.get_connections_from(node.id, FromType.OPTION, index)
            return branches[0].to_node if branches else FINAL_CONFIRMATION_ID

        return general or FINAL_CONFIRMATION_ID

    def retreat(self) -> StepView:
        """
        Step back without validation.

        Pops the current entry, skips history entries whose nodes no longer
        exist and lands on the nearest earlier rendered node. Reaching the
        start marker re-enters the node after start.
        """
        if self._kind in (StepKind.IDLE, StepKind.SUBMITTED):
            raise NavigationError(f"Cannot go back in state {self._kind.value}")

        if self._kind != StepKind.DEAD_END and self.history and self.history[-1] == self._current:
            self.history.pop()

        while self.history:
            candidate = self.history[-1]
            if candidate == FINAL_CONFIRMATION_ID or not self.nodes.has_node(candidate):
                self.history.pop()
                continue
            if self.nodes.get_node(candidate).is_start:
                break
            logger.debug("Going back to %s", candidate)
            return self._enter(candidate, from_back=True)

        start = self._start_node()
        if start is None:
            logger.warning("No start node to go back to")
            return self.current_step()
        return self._enter(start.id, from_back=True)

    def submit(self) -> Dict[str, Any]:
        """
        Finalise the run from the confirmation step.

        Returns:
            The exported answers, also passed to ``on_submit``
        """
        if self._kind != StepKind.CONFIRMATION:
            raise NavigationError(f"Cannot submit in state {self._kind.value}")

        exported = self.export_answers()
        self._kind = StepKind.SUBMITTED
        logger.info("Wizard submitted with %d fields", len(exported))
        if self.on_submit is not None:
            self.on_submit(exported)
        return exported

    def export_answers(self) -> Dict[str, Any]:
        return self.answers.export(self.nodes.get_all_nodes())

    # ------------------------------------------------------------------
    # Asynchronous boundaries
    # ------------------------------------------------------------------

    def begin_file_capture(self, node_id: str) -> None:
        self._pending_files.add(node_id)

    def complete_file_capture(self, node_id: str, value: Optional[FileValue]) -> None:
        """Finish a capture; a None value leaves the stored answer untouched."""
        self._pending_files.discard(node_id)
        if value is not None:
            self.answers.set(node_id, value)

    def is_capture_pending(self, node_id: str) -> bool:
        return node_id in self._pending_files

    def populate_options(self, node_id: str, options: List[NodeOption]) -> Node:
        """
        Replace a node's options after a remote load.

        The stored answer is kept as is, even when it no longer matches
        one of the new options.
        """
        node = self.nodes.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        node.options = list(options)
        logger.info("Loaded %d options for node %s", len(options), node_id)
        return node
