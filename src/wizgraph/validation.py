"""
Validation Engine — declarative, attribute-driven field validators.

A node opts in with ``data-xtz-validate: "true"`` and then switches on
individual validators through ``ValidatorKey`` flags. Every enabled
validator runs (no fail-fast) and each failure contributes one message,
either the validator's default or the node's ``<key>___message`` override.

Failures are returned as data. Nothing here raises on bad input.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from wizgraph.model import FileValue, Node, NodeAttributes, NodeType, ValidatorKey
from wizgraph.serialization import file_value_from_dict

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Leading decimal number; trailing text after it is ignored
NUMBER_PREFIX_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass
class ValidationResult:
    """Outcome of validating one node's value."""

    is_valid: bool = True
    errors: List[str] = field(default_factory=list)


@dataclass
class CheckResult:
    """Outcome of a single validator."""

    is_valid: bool
    default_message: str = ""


def _as_file(value: Any) -> Optional[FileValue]:
    if isinstance(value, FileValue):
        return value
    if isinstance(value, dict):
        return file_value_from_dict(value)
    return None


def _parse_int(raw: Any) -> Optional[int]:
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return None


def _parse_float(raw: Any) -> Optional[float]:
    """Numbers pass through. Strings are read up to the end of their leading number."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        match = NUMBER_PREFIX_RE.match(raw)
        if match is None:
            return None
        number = float(match.group(0))
    else:
        return None
    return None if math.isnan(number) else number


def _format_number(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def check_not_empty(value: Any, attributes: NodeAttributes, node: Node) -> CheckResult:
    if node.type == NodeType.CHECKBOX:
        is_empty = not isinstance(value, list) or len(value) == 0
    elif node.type == NodeType.FILE:
        is_empty = _as_file(value) is None
    else:
        is_empty = value is None or (isinstance(value, str) and value.strip() == "") or value == []
    return CheckResult(is_valid=not is_empty, default_message="This field is required")


def check_email(value: Any, attributes: NodeAttributes, node: Node) -> CheckResult:
    # Emptiness is the not-empty validator's concern
    if not value or not isinstance(value, str):
        return CheckResult(is_valid=True)
    return CheckResult(
        is_valid=bool(EMAIL_RE.match(value.strip())),
        default_message="Please enter a valid email address",
    )


def check_string_length(value: Any, attributes: NodeAttributes, node: Node) -> CheckResult:
    if not value or not isinstance(value, str):
        return CheckResult(is_valid=True)

    length = len(value.strip())
    min_length = _parse_int(attributes.validator_param(ValidatorKey.STRING_LENGTH, "min")) or 0
    max_length = _parse_int(attributes.validator_param(ValidatorKey.STRING_LENGTH, "max"))
    upper = max_length if max_length else math.inf

    if min_length > 0 and upper < math.inf:
        message = f"Must be between {min_length} and {max_length} characters"
    elif min_length > 0:
        message = f"Must be at least {min_length} characters"
    elif upper < math.inf:
        message = f"Must not exceed {max_length} characters"
    else:
        message = "Invalid length"

    return CheckResult(is_valid=min_length <= length <= upper, default_message=message)


def check_pattern(value: Any, attributes: NodeAttributes, node: Node) -> CheckResult:
    if not value or not isinstance(value, str):
        return CheckResult(is_valid=True)

    pattern = attributes.validator_param(ValidatorKey.PATTERN, "regexp")
    if not pattern:
        return CheckResult(is_valid=True)

    try:
        regex = re.compile(str(pattern))
    except re.error as exc:
        logger.warning("Ignoring invalid pattern %r on node %s: %s", pattern, node.id, exc)
        return CheckResult(is_valid=True)

    return CheckResult(is_valid=regex.search(value) is not None, default_message="Invalid format")


def check_numeric(value: Any, attributes: NodeAttributes, node: Node) -> CheckResult:
    if value is None or value == "":
        return CheckResult(is_valid=True)

    number = _parse_float(value)
    if number is None:
        return CheckResult(is_valid=False, default_message="Must be a valid number")

    minimum = _parse_float(attributes.validator_param(ValidatorKey.NUMERIC, "min"))
    maximum = _parse_float(attributes.validator_param(ValidatorKey.NUMERIC, "max"))

    is_valid = True
    message = "Invalid number"
    if minimum is not None and number < minimum:
        is_valid = False
        message = f"Must be at least {_format_number(minimum)}"
    if maximum is not None and number > maximum:
        is_valid = False
        message = f"Must not exceed {_format_number(maximum)}"

    return CheckResult(is_valid=is_valid, default_message=message)


def check_file(value: Any, attributes: NodeAttributes, node: Node) -> CheckResult:
    file_value = _as_file(value)
    if file_value is None:
        return CheckResult(is_valid=True)

    max_size = _parse_int(attributes.validator_param(ValidatorKey.FILE, "max-size"))
    if max_size and file_value.approximate_size > max_size:
        return CheckResult(
            is_valid=False,
            default_message=f"File size must not exceed {round(max_size / 1024)} KB",
        )

    allowed_types = attributes.validator_param(ValidatorKey.FILE, "type")
    if allowed_types and file_value.mime_type:
        allowed = [t.strip() for t in str(allowed_types).split(",")]
        if file_value.mime_type not in allowed:
            return CheckResult(
                is_valid=False,
                default_message=f"File type must be one of: {allowed_types}",
            )

    return CheckResult(is_valid=True)


Check = Callable[[Any, NodeAttributes, Node], CheckResult]

VALIDATORS: Dict[ValidatorKey, Check] = {
    ValidatorKey.NOT_EMPTY: check_not_empty,
    ValidatorKey.EMAIL: check_email,
    ValidatorKey.STRING_LENGTH: check_string_length,
    ValidatorKey.PATTERN: check_pattern,
    ValidatorKey.NUMERIC: check_numeric,
    ValidatorKey.FILE: check_file,
}


class ValidationEngine:
    """Runs the enabled validators of a node against a candidate value."""

    def __init__(self, validators: Optional[Dict[ValidatorKey, Check]] = None):
        self.validators = dict(validators or VALIDATORS)

    def validate_node(self, node: Node, value: Any) -> ValidationResult:
        attributes = node.attributes
        if not attributes.validation_enabled:
            return ValidationResult()

        errors: List[str] = []
        for key in ValidatorKey:
            if not attributes.is_enabled(key) or key not in self.validators:
                continue
            result = self.validators[key](value, attributes, node)
            if not result.is_valid:
                errors.append(attributes.message_for(key) or result.default_message)

        if errors:
            logger.debug("Node %s failed validation: %s", node.id, errors)
        return ValidationResult(is_valid=not errors, errors=errors)
