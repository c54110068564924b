"""
Unit tests for the request processor.
"""

import pytest

from ccserver.protocol import (
    ERROR_RESPONSE,
    INT32_MAX,
    INT32_MIN,
    Operation,
    process_request,
    wrap_int32,
)
from ccserver.stats import CounterSet


class TestScenarios:
    """The request/response pairs every client relies on."""

    @pytest.mark.parametrize("line, expected", [
        ("ADD 5 6", "11"),
        ("SUB 5 10", "-5"),
        ("MUL 7 8", "56"),
        ("DIV 10 3", "3"),
        ("DIV 10 0", "ERROR"),
        ("FOO 1 2", "ERROR"),
        ("ADD 10 abc", "ERROR"),
    ])
    def test_known_responses(self, line: str, expected: str):
        """Test the documented request/response pairs."""
        assert process_request(line).response == expected


class TestArithmetic:
    """Tests for 32-bit result semantics."""

    def test_add_wraps_on_overflow(self):
        """Test ADD wrapping past the 32-bit maximum."""
        assert process_request(f"ADD {INT32_MAX} 1").response == str(INT32_MIN)

    def test_sub_wraps_on_underflow(self):
        """Test SUB wrapping below the 32-bit minimum."""
        assert process_request(f"SUB {INT32_MIN} 1").response == str(INT32_MAX)

    def test_mul_wraps(self):
        """Test MUL keeping only the low 32 bits."""
        assert process_request("MUL 65536 65536").response == "0"
        assert process_request("MUL 2147483647 2").response == "-2"

    def test_div_truncates_toward_zero(self):
        """Test DIV rounding toward zero for every sign."""
        assert process_request("DIV -7 2").response == "-3"
        assert process_request("DIV 7 -2").response == "-3"
        assert process_request("DIV -7 -2").response == "3"

    def test_div_min_by_minus_one_wraps(self):
        """Test the one overflowing division."""
        assert process_request(f"DIV {INT32_MIN} -1").response == str(INT32_MIN)

    @pytest.mark.parametrize("a", [0, 1, -1, INT32_MAX, INT32_MIN])
    def test_div_by_zero_is_error(self, a: int):
        """Test that division by zero answers ERROR."""
        result = process_request(f"DIV {a} 0")

        assert result.response == ERROR_RESPONSE
        assert result.error == "Division by zero"
        assert result.request is not None
        assert result.request.operation is Operation.DIV

    def test_wrap_int32(self):
        """Test the 32-bit wrap helper."""
        assert wrap_int32(0) == 0
        assert wrap_int32(INT32_MAX + 1) == INT32_MIN
        assert wrap_int32(INT32_MIN - 1) == INT32_MAX
        assert wrap_int32(2 ** 40 + 5) == 5


class TestMalformedRequests:
    """Every malformed line answers ERROR and never raises."""

    @pytest.mark.parametrize("line", [
        "",
        "ADD",
        "ADD 1",
        "ADD 1 2 3",
        "ADD  1 2",       # empty token between the spaces
        " ADD 1 2",
        "add 1 2",        # operation is case-sensitive
        "ADD 1.5 2",
        "ADD 0x10 2",
        "ADD 1_000 2",
        "ADD 2147483648 0",
        "ADD -2147483649 0",
        "ADD\t1\t2",
        "\x00\x01\x02",
    ])
    def test_error_response(self, line: str):
        """Test that malformed lines answer ERROR."""
        result = process_request(line)

        assert result.response == ERROR_RESPONSE
        assert not result.ok

    def test_trailing_space_is_accepted(self):
        """Test that trailing spaces are ignored."""
        assert process_request("ADD 1 2 ").response == "3"

    def test_signed_operands(self):
        """Test explicit plus and minus signs on operands."""
        assert process_request("ADD +4 -6").response == "-2"


class TestDeltas:
    """Tests for the statistics each request produces."""

    def test_success_deltas(self):
        """Test the deltas of a successful request."""
        result = process_request("ADD 5 6")

        assert result.ok
        assert result.result == 11
        assert result.deltas == CounterSet(requests=1, add_ops=1, sum_of_results=11)

    @pytest.mark.parametrize("line, field", [
        ("SUB 1 1", "sub_ops"),
        ("MUL 1 1", "mul_ops"),
        ("DIV 1 1", "div_ops"),
    ])
    def test_operation_counter(self, line: str, field: str):
        """Test that each operation bumps its own counter."""
        deltas = process_request(line).deltas

        assert deltas.requests == 1
        assert getattr(deltas, field) == 1
        assert deltas.error_ops == 0

    def test_negative_result_counts_into_sum(self):
        """Test that negative results reduce the sum."""
        assert process_request("SUB 5 10").deltas.sum_of_results == -5

    @pytest.mark.parametrize("line", ["FOO 1 2", "DIV 10 0", "ADD 10 abc", "ADD"])
    def test_failure_deltas(self, line: str):
        """Test the deltas of a failed request."""
        result = process_request(line)

        assert result.deltas == CounterSet(requests=1, error_ops=1)
        assert result.result is None

    def test_clients_never_counted_by_processor(self):
        """Test that requests never count clients."""
        assert process_request("ADD 1 1").deltas.clients == 0
