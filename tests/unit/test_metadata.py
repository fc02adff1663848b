"""Unit tests for resource agent metadata."""

import xml.etree.ElementTree as ET

import pytest

from fwrole import __version__
from fwrole.services.metadata import ACTIONS, PARAMETERS, render_metadata


@pytest.fixture(scope="module")
def document():
    return ET.fromstring(render_metadata())


class TestRenderMetadata:
    """Tests for the meta-data XML document."""

    def test_root(self, document):
        assert document.tag == "resource-agent"
        assert document.get("name") == "fwrole"
        assert document.get("version") == __version__
        assert document.findtext("shortdesc").strip()

    def test_doctype(self):
        assert '<!DOCTYPE resource-agent SYSTEM "ra-api-1.dtd">' in render_metadata()

    def test_parameters(self, document):
        names = [p.get("name") for p in document.iter("parameter")]
        assert names == [p.name for p in PARAMETERS]
        assert "ports" in names
        assert "source_ips" in names
        assert "state" in names
        assert "notify_delay" in names

    def test_ports_required(self, document):
        ports = document.find("parameters/parameter[@name='ports']")
        assert ports.get("required") == "1"
        assert ports.find("content").get("default") is None

    def test_defaults(self, document):
        delay = document.find("parameters/parameter[@name='notify_delay']/content")
        assert delay.get("type") == "integer"
        assert delay.get("default") == "0"

    def test_actions(self, document):
        names = [a.get("name") for a in document.iter("action")]
        for action in ("start", "stop", "promote", "demote", "monitor", "notify",
                       "meta-data", "validate-all"):
            assert action in names
        assert len(names) == len(ACTIONS)

    def test_monitor_per_role(self, document):
        """Each role is monitored at a distinct interval."""
        monitors = [a for a in document.iter("action") if a.get("name") == "monitor"]
        assert {m.get("role") for m in monitors} == {"Promoted", "Unpromoted"}
        assert len({m.get("interval") for m in monitors}) == 2
        assert all(m.get("depth") == "0" for m in monitors)
