"""
=============================================================================
CCS REQUEST PARSING
=============================================================================

Turns one decoded request line into a structured Request.

=============================================================================
REQUEST LINE FORMAT
=============================================================================

    OP SP ARG1 SP ARG2

    Example: "MUL -7 8"
              ─┬─ ─┬ ┬
               │   │ │
              Op  Arg1 Arg2

    - Exactly three tokens separated by SINGLE spaces.
      "ADD  1 2" (two spaces) has an empty token and is rejected.
      Trailing spaces are dropped before counting, so "ADD 1 2 " is valid.
    - Op is case-sensitive: "add 1 2" is rejected.
    - Args are base-10 signed 32-bit integers: optional sign, ASCII digits.
      "0x10", "1_000", " 5" and "2147483648" are all rejected.

=============================================================================
ERRORS
=============================================================================

Every rejection raises ProtocolError. The processor turns it into the
ERROR response; it never escapes to the session.

=============================================================================
"""

import re
from dataclasses import dataclass
from enum import Enum


INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# int() alone would accept whitespace, underscores and non-ASCII digits
_INT_PATTERN = re.compile(r"^[+-]?[0-9]+$")


class ProtocolError(ValueError):
    """
    Raised when a request line cannot be turned into a Request.

    Carries the offending line so the access log can show what the
    client actually sent.
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class Operation(Enum):
    """The four arithmetic operations the server understands."""
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"

    @classmethod
    def from_token(cls, token: str) -> "Operation":
        """
        Look up an operation by its exact wire token.

        Raises:
            ProtocolError: If the token is not one of the four literals.
        """
        try:
            return cls(token)
        except ValueError:
            raise ProtocolError(f"Unknown operation: {token!r}") from None


@dataclass(frozen=True)
class Request:
    """
    A parsed arithmetic request.

    Attributes:
        operation: Which operation to apply.
        operand1: Left operand, a signed 32-bit value.
        operand2: Right operand, a signed 32-bit value.
    """
    operation: Operation
    operand1: int
    operand2: int

    def to_line(self) -> str:
        """Render the request in wire format (without terminator)."""
        return f"{self.operation.value} {self.operand1} {self.operand2}"


def parse_int32(token: str) -> int:
    """
    Parse a base-10 signed 32-bit integer.

    Args:
        token: The operand text.

    Returns:
        The integer value.

    Raises:
        ProtocolError: If the token is not a decimal integer or does not
                       fit in 32 bits.
    """
    if not _INT_PATTERN.match(token):
        raise ProtocolError(f"Invalid integer: {token!r}")

    value = int(token)
    if not INT32_MIN <= value <= INT32_MAX:
        raise ProtocolError(f"Integer out of 32-bit range: {token}")

    return value


def split_tokens(line: str) -> list[str]:
    """
    Split a line on single spaces, discarding trailing empty tokens.

    >>> split_tokens("ADD 1 2 ")
    ['ADD', '1', '2']
    >>> split_tokens("ADD  1 2")
    ['ADD', '', '1', '2']
    """
    tokens = line.split(" ")
    while tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def parse_request(line: str) -> Request:
    """
    Parse one request line.

    Args:
        line: Decoded request text without its line terminator.

    Returns:
        The parsed Request.

    Raises:
        ProtocolError: If the line is malformed in any way.
    """
    tokens = split_tokens(line)
    if len(tokens) != 3:
        raise ProtocolError(f"Expected 3 tokens, got {len(tokens)}", line)

    try:
        operand1 = parse_int32(tokens[1])
        operand2 = parse_int32(tokens[2])
        operation = Operation.from_token(tokens[0])
    except ProtocolError as e:
        e.line = line
        raise

    return Request(operation=operation, operand1=operand1, operand2=operand2)
