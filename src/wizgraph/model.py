"""
Core Wizard Graph Objects

Defines the fundamental data structures of a wizard graph.

These are plain data classes representing:
    - Nodes (steps of the wizard)
    - Options (choices of a branching node)
    - Attributes (presentation hints plus validation flags)
    - Connections (directed edges between nodes)
    - File values (captured uploads)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about rendering
        - Carry no traversal state
        - Are fully serializable
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


START_NODE_ID = "start"
FINAL_CONFIRMATION_ID = "__final_confirmation__"

AttributeValue = Union[str, int, float, bool, List[str], None]


class NodeType(str, Enum):
    """
    Step types understood by the engine.

    QUESTION is the editor's legacy branching type. It carries options but
    is not a form field, so the engine renders it like a message.
    """

    START = "start"
    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"
    RANGE = "range"
    HIDDEN = "hidden"
    MESSAGE = "message"
    CONDITION = "condition"
    ACTION = "action"
    QUESTION = "question"


# Types that collect a value from the user and appear in the progress path
FORM_FIELD_TYPES = frozenset({
    NodeType.TEXT,
    NodeType.EMAIL,
    NodeType.PASSWORD,
    NodeType.NUMBER,
    NodeType.TEXTAREA,
    NodeType.SELECT,
    NodeType.CHECKBOX,
    NodeType.RADIO,
    NodeType.FILE,
    NodeType.RANGE,
})

# Types that carry an option list (and per-option connection points)
OPTION_TYPES = frozenset({
    NodeType.QUESTION,
    NodeType.SELECT,
    NodeType.CHECKBOX,
    NodeType.RADIO,
})

TEXT_LIKE_TYPES = frozenset({
    NodeType.TEXT,
    NodeType.EMAIL,
    NodeType.PASSWORD,
    NodeType.NUMBER,
    NodeType.TEXTAREA,
    NodeType.RANGE,
})


class FromType(str, Enum):
    """Kind of outbound connection point."""

    OUTPUT = "output"   # unconditional edge
    OPTION = "option"   # edge tied to one option index


class ValidatorKey(str, Enum):
    """
    Recognised validator attributes.

    Declaration order is the evaluation order of the Validation Engine.
    """

    NOT_EMPTY = "data-fv-not-empty"
    EMAIL = "data-fv-email-address"
    STRING_LENGTH = "data-fv-string-length"
    PATTERN = "data-fv-regexp"
    NUMERIC = "data-fv-numeric"
    FILE = "data-fv-file"


VALIDATE_GATE_KEY = "data-xtz-validate"
REMOTE_OPTIONS_KEY = "data-xtz-url"
VALIDATOR_PREFIX = "data-fv-"
MESSAGE_SUFFIX = "___message"


def is_truthy_flag(value: Any) -> bool:
    """Attribute flags are set by the string "true" or by boolean True."""
    if value is True:
        return True
    return isinstance(value, str) and value.strip().lower() == "true"


def _coerce_scalar(raw: str) -> AttributeValue:
    if raw == "true":
        return True
    if raw == "false":
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


@dataclass
class NodeAttributes:
    """
    Open attribute bag of a node.

    Holds two kinds of keys side by side:
        - validation keys: the gate ``data-xtz-validate``, the closed set of
          ``ValidatorKey`` flags and their ``<key>___<param>`` parameters
        - presentation keys: anything else (``name``, ``value``,
          ``data-xtz-url``, raw DOM hints) passed through untouched

    Properties:
        values: underlying string-keyed mapping
    """

    values: Dict[str, AttributeValue] = field(default_factory=dict)

    def get(self, key: str, default: AttributeValue = None) -> AttributeValue:
        return self.values.get(key, default)

    def set(self, key: str, value: AttributeValue) -> None:
        self.values[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def is_enabled(self, key: Union[str, ValidatorKey]) -> bool:
        name = key.value if isinstance(key, ValidatorKey) else key
        return is_truthy_flag(self.values.get(name))

    @property
    def validation_enabled(self) -> bool:
        return self.is_enabled(VALIDATE_GATE_KEY)

    def enabled_validators(self) -> List[ValidatorKey]:
        """Validators switched on for this node, in evaluation order."""
        return [key for key in ValidatorKey if self.is_enabled(key)]

    def validator_param(self, key: ValidatorKey, param: str) -> AttributeValue:
        """Read ``<key>___<param>``, e.g. ``data-fv-string-length___min``."""
        return self.values.get(f"{key.value}___{param}")

    def message_for(self, key: ValidatorKey) -> Optional[str]:
        message = self.values.get(f"{key.value}{MESSAGE_SUFFIX}")
        return str(message) if message else None

    @property
    def name(self) -> Optional[str]:
        name = self.values.get("name")
        return str(name) if name else None

    @property
    def value(self) -> AttributeValue:
        return self.values.get("value")

    @property
    def remote_url(self) -> Optional[str]:
        url = self.values.get(REMOTE_OPTIONS_KEY)
        return str(url) if url else None

    def presentation(self) -> Dict[str, AttributeValue]:
        """Attributes that are not validation keys."""
        return {
            key: value
            for key, value in self.values.items()
            if not key.startswith(VALIDATOR_PREFIX) and key != VALIDATE_GATE_KEY
        }

    def to_dict(self) -> Dict[str, AttributeValue]:
        return dict(self.values)

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, AttributeValue]]) -> "NodeAttributes":
        return cls(values=dict(d or {}))

    @classmethod
    def parse(cls, text: str) -> "NodeAttributes":
        """
        Parse the editor's attribute string.

        Example:
            "name: email, data-fv-not-empty: true, data-fv-numeric___min: 3"

        ``true``/``false`` become booleans and numeric values become numbers.
        Pairs without a key are dropped.
        """
        values: Dict[str, AttributeValue] = {}
        for pair in (text or "").split(","):
            key, _, raw = pair.partition(":")
            key = key.strip()
            if not key:
                continue
            values[key] = _coerce_scalar(raw.strip())
        return cls(values=values)


@dataclass
class NodeOption:
    """
    One choice of a branching node.

    The position of an option inside ``Node.options`` is its option index,
    which is what option connections refer to.

    Properties:
        value: submitted value
        description: label shown to the user
        id: optional DOM id
        name: optional DOM name
        checked / selected: default-selection flags
    """

    value: str
    description: str = ""
    id: Optional[str] = None
    name: Optional[str] = None
    checked: bool = False
    selected: bool = False

    @property
    def is_default(self) -> bool:
        return self.checked or self.selected


@dataclass
class FileValue:
    """
    Captured file.

    Properties:
        base64: data URL (``data:<mime>;base64,<payload>``) or raw base64
        file_name: original file name
        mime_type: MIME type reported for the file
    """

    base64: str
    file_name: str = ""
    mime_type: str = ""

    @property
    def approximate_size(self) -> float:
        """Byte size approximated from the encoded length."""
        return len(self.base64) * 3 / 4


@dataclass
class Node:
    """
    A single wizard step.

    Properties:
        id:
            Unique identifier. ``"start"`` is reserved for the entry point.

        type:
            NodeType of the step. May be None only for malformed graphs
            loaded from external data; validate_graph reports those.

        title / content / context:
            Display texts. ``content`` is the question text shown to the user.

        placeholder / help:
            Presentation hints.

        x / y:
            Canvas position. Stored and round-tripped, never interpreted.

        attributes:
            NodeAttributes bag (presentation hints plus validation flags).

        options:
            Ordered choices for option types. Index is significant.

        default_radio_value:
            Initial selection of a radio node.
    """

    id: str
    type: Optional[NodeType]
    title: str = ""
    content: str = ""
    context: str = ""
    placeholder: str = ""
    help: str = ""
    x: float = 100
    y: float = 100
    attributes: NodeAttributes = field(default_factory=NodeAttributes)
    options: List[NodeOption] = field(default_factory=list)
    default_radio_value: Optional[str] = None

    @property
    def is_start(self) -> bool:
        return self.type == NodeType.START or self.id == START_NODE_ID

    @property
    def is_form_field(self) -> bool:
        return self.type in FORM_FIELD_TYPES

    @property
    def field_name(self) -> str:
        """Submitted field name: the ``name`` attribute or ``field_<id>``."""
        return self.attributes.name or f"field_{self.id}"

    @property
    def label(self) -> str:
        return self.content or self.title

    def option_index(self, value: Any) -> int:
        """Position of the option whose value equals ``value``, -1 if none."""
        if value is None or value == "":
            return -1
        for index, option in enumerate(self.options):
            if option.value == value:
                return index
        return -1

    def get_option(self, value: Any) -> Optional[NodeOption]:
        index = self.option_index(value)
        return self.options[index] if index >= 0 else None


def normalize_option_index(value: Any) -> Optional[int]:
    """Option indexes arrive as ints or numeric strings; store them as ints."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid option index: {value!r}")
    return int(value)


@dataclass
class Connection:
    """
    A directed edge from one node to another.

    ARCHITECTURAL RULE:
        A node has a single inbound slot, so ``to_type`` is always "input".
        ``option_index`` only matters when ``from_type`` is OPTION.

    Properties:
        id: connection identifier
        from_node: source node id
        to_node: target node id
        from_type: OUTPUT (unconditional) or OPTION (per option index)
        option_index: zero-based option position for OPTION edges
        to_type: always "input"
    """

    id: str
    from_node: str
    to_node: str
    from_type: FromType = FromType.OUTPUT
    option_index: Optional[int] = None
    to_type: str = "input"

    @property
    def key(self) -> Tuple[str, str, FromType, Optional[int]]:
        """Identity tuple used for duplicate detection."""
        return (self.from_node, self.to_node, self.from_type, self.option_index)
