"""
=============================================================================
REQUEST PROCESSOR
=============================================================================

The only place arithmetic happens. Pure: no sockets, no shared state.

    line ──► parse_request() ──► evaluate() ──► ProcessingResult
                   │                  │               │
                   │                  │               ├── response  ("11" / "ERROR")
                   └── ProtocolError ─┘               └── deltas    (CounterSet)

=============================================================================
32-BIT ARITHMETIC
=============================================================================

Python integers never overflow, but the protocol promises 32-bit two's
complement results. wrap_int32() folds any integer back into range:

    ADD 2147483647 1        → -2147483648
    MUL 65536 65536         → 0
    DIV -2147483648 -1      → -2147483648

Division truncates toward zero (-7 / 2 = -3), unlike Python's floor
division (-7 // 2 = -4).

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional

from .messages import ERROR_RESPONSE
from .request import Operation, ProtocolError, Request, parse_request
from ..stats.counters import CounterSet


_OPERATION_FIELDS = {
    Operation.ADD: "add_ops",
    Operation.SUB: "sub_ops",
    Operation.MUL: "mul_ops",
    Operation.DIV: "div_ops",
}


@dataclass(frozen=True)
class ProcessingResult:
    """
    Outcome of one request.

    Attributes:
        response: Text to send back, without line terminator.
        deltas: Statistics increments the request caused.
        request: The parsed request, or None if parsing failed.
        result: The integer result, or None on failure.
        error: Why the request failed, or None on success.
    """
    response: str
    deltas: CounterSet
    request: Optional[Request] = None
    result: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def wrap_int32(value: int) -> int:
    """Fold an arbitrary integer into signed 32-bit range."""
    return ((value + 2 ** 31) % 2 ** 32) - 2 ** 31


def _truncating_div(dividend: int, divisor: int) -> int:
    quotient = abs(dividend) // abs(divisor)
    if (dividend < 0) != (divisor < 0):
        quotient = -quotient
    return quotient


def evaluate(request: Request) -> int:
    """
    Compute the result of a parsed request.

    Args:
        request: A well-formed request.

    Returns:
        The 32-bit result.

    Raises:
        ProtocolError: On division by zero.
    """
    a, b = request.operand1, request.operand2

    if request.operation is Operation.ADD:
        value = a + b
    elif request.operation is Operation.SUB:
        value = a - b
    elif request.operation is Operation.MUL:
        value = a * b
    else:
        if b == 0:
            raise ProtocolError("Division by zero", request.to_line())
        value = _truncating_div(a, b)

    return wrap_int32(value)


def _failure(error: str, request: Optional[Request] = None) -> ProcessingResult:
    return ProcessingResult(
        response=ERROR_RESPONSE,
        deltas=CounterSet(requests=1, error_ops=1),
        request=request,
        error=error,
    )


def process_request(line: str) -> ProcessingResult:
    """
    Process one request line.

    Never raises: every malformed or invalid request becomes an ERROR
    result with {requests, error_ops} deltas.

    Args:
        line: Decoded request text without its line terminator.

    Returns:
        ProcessingResult with the response text and statistics deltas.

    Example:
        >>> process_request("ADD 5 6").response
        '11'
        >>> process_request("DIV 10 0").response
        'ERROR'
    """
    try:
        request = parse_request(line)
    except ProtocolError as e:
        return _failure(str(e))

    try:
        result = evaluate(request)
    except ProtocolError as e:
        return _failure(str(e), request)

    deltas = CounterSet(requests=1, sum_of_results=result)
    setattr(deltas, _OPERATION_FIELDS[request.operation], 1)

    return ProcessingResult(
        response=str(result),
        deltas=deltas,
        request=request,
        result=result,
    )
