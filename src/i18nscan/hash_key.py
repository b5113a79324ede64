import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

KEY_PREFIX = "k_"
KEY_DIGITS = 7
_RADIX36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def strip_whitespace(value: str) -> str:
    return "".join(value.split())


def hash_string(value: str) -> int:
    # 32-bit rolling hash over the UTF-8 bytes, must stay in sync with the runtime lookup
    digest = 0
    for byte in value.encode("utf-8"):
        digest = (digest * 31 + byte) & 0xFFFFFFFF
    return digest


def radix36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number > 0:
        number, remainder = divmod(number, 36)
        digits.append(_RADIX36_ALPHABET[remainder])
    return "".join(reversed(digits))


def compute_key(value: str) -> str:
    return KEY_PREFIX + radix36(hash_string(strip_whitespace(value))).rjust(KEY_DIGITS, "0")


def format_collision_message(existing: str, new: str) -> str:
    return f'Same sentence in different forms found:\n    "{existing}"\n    "{new}"'


class KeyRegistry:
    """Remembers which key every hashed sentence produced.

    One registry lives as long as one scan session; call ``clear`` between
    independent sessions. Two different whitespace-stripped sentences landing
    on the same key are reported through ``on_error`` and the fresh key is
    still returned.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._keys: dict[str, str] = {}
        self._sentences: dict[str, str] = {}

    def hash_key(
        self,
        value: str,
        context: str | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> str:
        # context is accepted for call-site symmetry, it never changes the key
        key = compute_key(value)
        cleaned = strip_whitespace(value)
        message = None
        with self._lock:
            existing_key = self._keys.get(value)
            if existing_key is None:
                self._keys[value] = key
            elif existing_key != key:
                message = format_collision_message(existing_key, key)

            existing_sentence = self._sentences.setdefault(key, cleaned)
            if message is None and existing_sentence != cleaned:
                message = (
                    format_collision_message(existing_sentence, cleaned)
                    + f"\n    both hash to {key}"
                )

        if message is not None:
            logger.debug(message)
            if on_error is not None:
                on_error(message)
        return key

    def clear(self) -> None:
        with self._lock:
            self._keys.clear()
            self._sentences.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    def __contains__(self, value: object) -> bool:
        with self._lock:
            return value in self._keys


def hash_key(
    value: str,
    context: str | None = None,
    registry: KeyRegistry | None = None,
    on_error: Callable[[str], None] | None = None,
) -> str:
    if registry is None:
        return compute_key(value)
    return registry.hash_key(value, context, on_error)
