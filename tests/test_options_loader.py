"""
Tests for remote option loading. HTTP is replaced by a fake session.
"""

import asyncio

import pytest
import requests

from wizgraph.model import NodeOption
from wizgraph.options_loader import OptionsLoader, load_remote_options, parse_options
from wizgraph.wizard import Wizard


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def close(self):
        self.closed = True


def build_wizard():
    wizard = Wizard()
    wizard.add_node({
        "id": "country",
        "type": "select",
        "attributes": {"name": "country", "data-xtz-url": "https://example.test/countries"},
        "options": [{"value": "placeholder", "description": "Loading..."}],
    })
    wizard.add_connection({"from": "start", "to": "country"})
    return wizard


class TestParseOptions:
    """Test payload parsing."""

    def test_list_payload(self):
        options = parse_options([{"value": "nl", "description": "Netherlands"}, {"value": 1}])
        assert options == [NodeOption("nl", "Netherlands"), NodeOption("1", "1")]

    def test_mapping_payload(self):
        options = parse_options({"a": {"value": "nl", "description": "Netherlands"}})
        assert [o.value for o in options] == ["nl"]

    def test_malformed_items_skipped(self):
        assert parse_options([{"description": "no value"}, "text", {"value": "ok"}]) == [NodeOption("ok", "ok")]

    def test_unexpected_payload(self):
        with pytest.raises(ValueError):
            parse_options("nope")


class TestOptionsLoader:
    """Test the HTTP fetch."""

    def test_fetch_uses_timeout(self):
        session = FakeSession(FakeResponse([{"value": "nl", "description": "Netherlands"}]))
        loader = OptionsLoader(session=session, timeout=3)
        assert loader.fetch("https://example.test/countries") == [NodeOption("nl", "Netherlands")]
        assert session.calls == [("https://example.test/countries", 3)]

    def test_http_error_propagates(self):
        loader = OptionsLoader(session=FakeSession(FakeResponse([], status_code=500)))
        with pytest.raises(requests.HTTPError):
            loader.fetch("https://example.test/countries")

    def test_context_manager_closes_session(self):
        """Leaving the with block closes the underlying session."""
        session = FakeSession(FakeResponse([]))
        with OptionsLoader(session=session) as loader:
            loader.fetch("https://example.test/countries")
            assert not session.closed
        assert session.closed

    def test_wizard_close_releases_session(self):
        """Wizard.close and the wizard context manager close the loader session."""
        session = FakeSession(FakeResponse([]))
        wizard = Wizard()
        wizard.options_loader = OptionsLoader(session=session)
        wizard.close()
        assert session.closed

        session = FakeSession(FakeResponse([]))
        with Wizard() as wizard:
            wizard.options_loader = OptionsLoader(session=session)
        assert session.closed


class TestLoadRemoteOptions:
    """Test populating a node from its URL."""

    def test_populates_current_node(self):
        wizard = build_wizard()
        wizard.options_loader = OptionsLoader(session=FakeSession(FakeResponse([
            {"value": "nl", "description": "Netherlands"},
            {"value": "be", "description": "Belgium"},
        ])))
        wizard.start()

        assert asyncio.run(wizard.load_remote_options("country")) is True
        assert [o.value for o in wizard.current_node().options] == ["nl", "be"]

        result = wizard.advance("be")
        assert result.advanced
        assert wizard.export_answers() == {"country": "be"}

    def test_transport_failure_leaves_options(self):
        wizard = build_wizard()
        wizard.options_loader = OptionsLoader(session=FakeSession(requests.ConnectionError("down")))
        assert asyncio.run(wizard.load_remote_options("country")) is False
        assert [o.value for o in wizard.nodes.get_node("country").options] == ["placeholder"]

    def test_bad_json_leaves_options(self):
        wizard = build_wizard()
        wizard.options_loader = OptionsLoader(session=FakeSession(FakeResponse(ValueError("bad json"))))
        assert asyncio.run(wizard.load_remote_options("country")) is False

    def test_node_without_url(self):
        wizard = build_wizard()
        wizard.add_node({"id": "plain", "type": "select"})
        loader = OptionsLoader(session=FakeSession(FakeResponse([])))
        assert asyncio.run(load_remote_options(wizard.engine, "plain", loader)) is False
