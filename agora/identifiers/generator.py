"""Time-sortable 64-bit identifiers and their public string encoding.

Layout, most significant bit first::

    | 42 bits: ms since epoch | 10 bits: node | 12 bits: sequence |

Ordering ids numerically approximates ordering by creation time, so listing
by id or by ``created_at`` gives the same order for one generator. The
string form is 13 characters of Crockford base32, which is what every API
response carries.
"""

import logging
import threading
import time
from collections.abc import Callable

from agora.errors import InvalidIdentifierError
from agora.identifiers.config import IdentifierConfig

logger = logging.getLogger(__name__)

TIMESTAMP_BITS = 42
NODE_BITS = 10
SEQUENCE_BITS = 12

MAX_NODE_ID = (1 << NODE_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1
MAX_TIMESTAMP = (1 << TIMESTAMP_BITS) - 1

ENCODED_LENGTH = 13
_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE_MAP = {ch: i for i, ch in enumerate(_ALPHABET)}
_MAX_ID = (1 << 64) - 1


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class IdGenerator:
    """Generates unique, monotonically non-decreasing ids for one node.

    Construct once per process with the node id configured for that
    instance and share it; the internal lock makes ``generate`` safe to
    call from several threads.

    Args:
        config: Node id and epoch. Defaults to ``IdentifierConfig()``.
        clock: Returns the current Unix time in milliseconds. Injected in tests.
    """

    def __init__(
        self,
        config: IdentifierConfig | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._config = config or IdentifierConfig()
        if not 0 <= self._config.node_id <= MAX_NODE_ID:
            raise ValueError(
                f"node_id must be between 0 and {MAX_NODE_ID}, got {self._config.node_id}"
            )
        self._node_id = self._config.node_id
        self._epoch_ms = int(self._config.epoch.timestamp() * 1000)
        self._clock = clock or _wall_clock_ms
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    @property
    def node_id(self) -> int:
        return self._node_id

    def generate(self) -> int:
        """Return the next id."""
        with self._lock:
            now = self._clock() - self._epoch_ms
            if now < 0:
                raise RuntimeError("System clock is set before the identifier epoch")

            if now > self._last_ms:
                self._last_ms = now
                self._sequence = 0
            else:
                # Same millisecond, or the clock stepped back: stay on the
                # last timestamp and advance the sequence.
                self._sequence += 1
                if self._sequence > MAX_SEQUENCE:
                    self._last_ms += 1
                    self._sequence = 0

            if self._last_ms > MAX_TIMESTAMP:
                raise RuntimeError("Identifier timestamp space exhausted")

            return (
                (self._last_ms << (NODE_BITS + SEQUENCE_BITS))
                | (self._node_id << SEQUENCE_BITS)
                | self._sequence
            )

    def timestamp_ms(self, identifier: int) -> int:
        """Unix time in milliseconds embedded in an id from this epoch."""
        return (identifier >> (NODE_BITS + SEQUENCE_BITS)) + self._epoch_ms


def encode(identifier: int) -> str:
    """Encode a 64-bit id as 13 upper-case Crockford base32 characters."""
    if not 0 <= identifier <= _MAX_ID:
        raise ValueError(f"Identifier out of 64-bit range: {identifier}")
    chars = []
    for i in range(ENCODED_LENGTH):
        shift = 5 * (ENCODED_LENGTH - 1 - i)
        chars.append(_ALPHABET[(identifier >> shift) & 0x1F])
    return "".join(chars)


def decode(value: str) -> int:
    """Decode the public string form back to the integer id.

    Raises:
        InvalidIdentifierError: wrong length, unknown character, or a value
            wider than 64 bits.
    """
    if value is None or len(value) != ENCODED_LENGTH:
        raise InvalidIdentifierError(
            str(value), f"expected {ENCODED_LENGTH} characters"
        )

    result = 0
    for ch in value.upper():
        digit = _DECODE_MAP.get(ch)
        if digit is None:
            raise InvalidIdentifierError(value, f"invalid character {ch!r}")
        result = (result << 5) | digit

    # 13 base32 digits carry 65 bits; the top one must be clear.
    if result > _MAX_ID:
        raise InvalidIdentifierError(value, "value exceeds 64 bits")
    return result
