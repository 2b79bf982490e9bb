"""
Tests for the Validation Engine.

Each validator is exercised through ValidationEngine.validate_node so the
gate, evaluation order and message overrides are covered alongside the
individual checks.
"""

import pytest

from wizgraph.model import FileValue, Node, NodeAttributes, NodeOption, NodeType
from wizgraph.validation import ValidationEngine


def make_node(node_type, **attributes):
    attrs = {"data-xtz-validate": "true"}
    attrs.update(attributes)
    return Node(id="n", type=node_type, attributes=NodeAttributes(attrs))


@pytest.fixture
def engine():
    return ValidationEngine()


class TestGate:
    """Test the data-xtz-validate gate."""

    def test_gate_off_always_valid(self, engine):
        """Without the gate nothing is checked."""
        node = Node(id="n", type=NodeType.TEXT, attributes=NodeAttributes({"data-fv-not-empty": "true"}))
        assert engine.validate_node(node, "").is_valid

    def test_gate_on_without_validators(self, engine):
        """The gate alone checks nothing."""
        assert engine.validate_node(make_node(NodeType.TEXT), "").is_valid


class TestNotEmpty:
    """Test the required-field validator."""

    def test_empty_text(self, engine):
        """Blank text fails with the default message."""
        node = make_node(NodeType.TEXT, **{"data-fv-not-empty": "true"})
        result = engine.validate_node(node, "   ")
        assert not result.is_valid
        assert result.errors == ["This field is required"]

    def test_filled_text(self, engine):
        """Non-blank text passes."""
        node = make_node(NodeType.TEXT, **{"data-fv-not-empty": "true"})
        assert engine.validate_node(node, "ok").is_valid

    def test_checkbox_needs_a_selection(self, engine):
        """An empty checkbox list is empty."""
        node = make_node(NodeType.CHECKBOX, **{"data-fv-not-empty": "true"})
        assert not engine.validate_node(node, []).is_valid
        assert engine.validate_node(node, ["a"]).is_valid

    def test_file_needs_base64(self, engine):
        """A file node without a captured file is empty."""
        node = make_node(NodeType.FILE, **{"data-fv-not-empty": "true"})
        assert not engine.validate_node(node, None).is_valid
        assert engine.validate_node(node, FileValue(base64="data:text/plain;base64,QQ==")).is_valid

    def test_message_override(self, engine):
        """<key>___message replaces the default message."""
        node = make_node(NodeType.TEXT, **{
            "data-fv-not-empty": "true",
            "data-fv-not-empty___message": "Tell us your name",
        })
        assert engine.validate_node(node, "").errors == ["Tell us your name"]


class TestEmail:
    """Test the email validator."""

    def test_invalid_email(self, engine):
        node = make_node(NodeType.EMAIL, **{"data-fv-email-address": "true"})
        result = engine.validate_node(node, "not-an-email")
        assert result.errors == ["Please enter a valid email address"]

    def test_valid_email_is_trimmed(self, engine):
        node = make_node(NodeType.EMAIL, **{"data-fv-email-address": "true"})
        assert engine.validate_node(node, "  ada@example.org ").is_valid

    def test_absent_value_passes(self, engine):
        """Emptiness is left to the not-empty validator."""
        node = make_node(NodeType.EMAIL, **{"data-fv-email-address": "true"})
        assert engine.validate_node(node, "").is_valid


class TestStringLength:
    """Test the string-length validator."""

    def test_between_message(self, engine):
        node = make_node(NodeType.TEXT, **{
            "data-fv-string-length": "true",
            "data-fv-string-length___min": "3",
            "data-fv-string-length___max": "5",
        })
        assert engine.validate_node(node, "ab").errors == ["Must be between 3 and 5 characters"]
        assert engine.validate_node(node, "abcdef").errors == ["Must be between 3 and 5 characters"]
        assert engine.validate_node(node, "abcd").is_valid

    def test_min_only_message(self, engine):
        node = make_node(NodeType.TEXT, **{
            "data-fv-string-length": "true",
            "data-fv-string-length___min": 4,
        })
        assert engine.validate_node(node, "abc").errors == ["Must be at least 4 characters"]

    def test_max_only_message(self, engine):
        node = make_node(NodeType.TEXT, **{
            "data-fv-string-length": "true",
            "data-fv-string-length___max": 2,
        })
        assert engine.validate_node(node, "abc").errors == ["Must not exceed 2 characters"]

    def test_length_uses_trimmed_value(self, engine):
        node = make_node(NodeType.TEXT, **{
            "data-fv-string-length": "true",
            "data-fv-string-length___max": 3,
        })
        assert engine.validate_node(node, "  abc  ").is_valid


class TestPattern:
    """Test the regexp validator."""

    def test_pattern_mismatch(self, engine):
        node = make_node(NodeType.TEXT, **{
            "data-fv-regexp": "true",
            "data-fv-regexp___regexp": "^[A-Z]{2}[0-9]+$",
        })
        assert engine.validate_node(node, "ab12").errors == ["Invalid format"]
        assert engine.validate_node(node, "AB12").is_valid

    def test_invalid_regex_passes(self, engine):
        """An unparsable pattern never blocks the user."""
        node = make_node(NodeType.TEXT, **{
            "data-fv-regexp": "true",
            "data-fv-regexp___regexp": "([unclosed",
        })
        assert engine.validate_node(node, "anything").is_valid


class TestNumeric:
    """Test the numeric validator."""

    def test_not_a_number(self, engine):
        node = make_node(NodeType.NUMBER, **{"data-fv-numeric": "true"})
        assert engine.validate_node(node, "abc").errors == ["Must be a valid number"]

    def test_bounds(self, engine):
        node = make_node(NodeType.NUMBER, **{
            "data-fv-numeric": "true",
            "data-fv-numeric___min": 18,
            "data-fv-numeric___max": "120",
        })
        assert engine.validate_node(node, "17").errors == ["Must be at least 18"]
        assert engine.validate_node(node, "121").errors == ["Must not exceed 120"]
        assert engine.validate_node(node, "42.5").is_valid

    def test_empty_passes(self, engine):
        node = make_node(NodeType.NUMBER, **{"data-fv-numeric": "true"})
        assert engine.validate_node(node, "").is_valid

    def test_leading_number_is_read(self, engine):
        """Text after a leading number is ignored; text without one is rejected."""
        node = make_node(NodeType.NUMBER, **{"data-fv-numeric": "true", "data-fv-numeric___min": 10})
        assert engine.validate_node(node, "12abc").is_valid
        assert engine.validate_node(node, " 9 apples").errors == ["Must be at least 10"]
        assert engine.validate_node(node, "1e2").is_valid
        assert engine.validate_node(node, "abc12").errors == ["Must be a valid number"]
        assert engine.validate_node(node, "-").errors == ["Must be a valid number"]
        assert engine.validate_node(node, 15).is_valid


class TestFile:
    """Test the file validator."""

    def test_max_size(self, engine):
        node = make_node(NodeType.FILE, **{
            "data-fv-file": "true",
            "data-fv-file___max-size": 1024,
        })
        big = FileValue(base64="A" * 2000, file_name="big.png", mime_type="image/png")
        assert engine.validate_node(node, big).errors == ["File size must not exceed 1 KB"]

    def test_mime_type_allow_list(self, engine):
        node = make_node(NodeType.FILE, **{
            "data-fv-file": "true",
            "data-fv-file___type": "image/png,image/jpeg",
        })
        pdf = FileValue(base64="QQ==", file_name="doc.pdf", mime_type="application/pdf")
        png = FileValue(base64="QQ==", file_name="logo.png", mime_type="image/png")
        assert engine.validate_node(node, pdf).errors == ["File type must be one of: image/png,image/jpeg"]
        assert engine.validate_node(node, png).is_valid

    def test_no_file_passes(self, engine):
        node = make_node(NodeType.FILE, **{"data-fv-file": "true"})
        assert engine.validate_node(node, None).is_valid

    def test_wire_dict_file(self, engine):
        """A file given in its serialized shape is checked like a FileValue."""
        node = make_node(NodeType.FILE, **{
            "data-fv-file": "true",
            "data-fv-file___type": "image/png",
        })
        pdf = {"base64": "QQ==", "fileName": "doc.pdf", "mimeType": "application/pdf"}
        png = {"base64": "QQ==", "fileName": "logo.png", "mimeType": "image/png"}
        assert engine.validate_node(node, pdf).errors == ["File type must be one of: image/png"]
        assert engine.validate_node(node, png).is_valid


class TestCollection:
    """Test that every failing validator contributes a message."""

    def test_all_failures_in_order(self, engine):
        node = make_node(NodeType.TEXT, **{
            "data-fv-numeric": "true",
            "data-fv-string-length": "true",
            "data-fv-string-length___min": 5,
            "data-fv-regexp": "true",
            "data-fv-regexp___regexp": "^[0-9]+$",
        })
        result = engine.validate_node(node, "ab")
        assert result.errors == [
            "Must be at least 5 characters",
            "Invalid format",
            "Must be a valid number",
        ]

    def test_select_required(self, engine):
        node = make_node(NodeType.SELECT, **{"data-fv-not-empty": "true"})
        node.options = [NodeOption("a", "A")]
        assert not engine.validate_node(node, "").is_valid
        assert engine.validate_node(node, "a").is_valid
