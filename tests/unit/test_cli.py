"""
Unit tests for the command-line entry point.
"""

import argparse
import socket

import pytest

from ccserver.__main__ import build_parser, main, port_number


class TestPortNumber:
    """Tests for the port argument type."""

    @pytest.mark.parametrize("value, port", [("1", 1), ("8080", 8080), ("65535", 65535)])
    def test_valid(self, value: str, port: int):
        """Test that ports in range are accepted."""
        assert port_number(value) == port

    @pytest.mark.parametrize("value", ["0", "65536", "-1", "abc", "80.5", ""])
    def test_invalid(self, value: str):
        """Test that out-of-range and non-numeric ports are rejected."""
        with pytest.raises(argparse.ArgumentTypeError):
            port_number(value)


class TestMain:
    """Argument errors exit with status 1 before anything starts."""

    @pytest.mark.parametrize("argv", [
        [],
        ["8080", "9090"],
        ["abc"],
        ["0"],
        ["70000"],
        ["--port", "8080"],
    ])
    def test_bad_arguments_exit_1(self, argv, capsys):
        """Test that argument errors exit with status 1 and print usage."""
        with pytest.raises(SystemExit) as exc_info:
            main(argv)

        assert exc_info.value.code == 1
        assert "usage: ccserver" in capsys.readouterr().err

    def test_invalid_port_message(self, capsys):
        """Test the message printed for a non-numeric port."""
        with pytest.raises(SystemExit):
            main(["abc"])

        assert "Invalid port number" in capsys.readouterr().err

    def test_parser_accepts_single_port(self):
        """Test parsing the single positional port."""
        assert build_parser().parse_args(["9000"]).port == 9000

    def test_port_in_use_exits_1(self, monkeypatch, capsys):
        """Test that a port already in use exits with status 1."""
        monkeypatch.setenv("CCS_HOST", "127.0.0.1")

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            with pytest.raises(SystemExit) as exc_info:
                main([str(port)])

        assert exc_info.value.code == 1
        assert "Could not start server" in capsys.readouterr().err
