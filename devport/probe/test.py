"""Tests for the socket port probe."""

import socket

import pytest

from .lib import SocketPortProbe


@pytest.fixture
def listening_port():
    """Bind and listen on an ephemeral localhost port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        yield s.getsockname()[1]


@pytest.fixture
def released_port():
    """Return an ephemeral port that is no longer bound."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return port


class TestSocketPortProbe:
    """Tests for SocketPortProbe.is_in_use()."""

    @pytest.mark.unit
    def test_listening_port_is_in_use(self, listening_port):
        """A port with an active listener is reported in use."""
        probe = SocketPortProbe(host="127.0.0.1")
        assert probe.is_in_use(listening_port) is True

    @pytest.mark.unit
    def test_released_port_is_free(self, released_port):
        """A port nobody holds is reported free."""
        probe = SocketPortProbe(host="127.0.0.1")
        assert probe.is_in_use(released_port) is False

    @pytest.mark.unit
    def test_probe_does_not_hold_port(self, released_port):
        """Probing releases the socket, so repeated probes agree."""
        probe = SocketPortProbe(host="127.0.0.1")
        assert probe.is_in_use(released_port) is False
        assert probe.is_in_use(released_port) is False

    @pytest.mark.unit
    @pytest.mark.parametrize("port", [0, -1, 65536, 100000])
    def test_invalid_port_is_in_use(self, port):
        """Out-of-range ports are never offered."""
        assert SocketPortProbe().is_in_use(port) is True

    @pytest.mark.unit
    def test_default_host(self):
        """Default probe binds all interfaces."""
        assert SocketPortProbe().host == "0.0.0.0"
