"""
Literal protocol tokens shared by the server and the client.

Both sides compare these byte-for-byte, so they must never be
localized, padded, or case-folded.
"""

# UDP discovery handshake
DISCOVER_MESSAGE = "CCS DISCOVER"
FOUND_MESSAGE = "CCS FOUND"

# Largest discovery datagram we look at
DISCOVERY_BUFFER_SIZE = 1024

# TCP responses
ERROR_RESPONSE = "ERROR"
LINE_TERMINATOR = "\n"

ENCODING = "utf-8"
