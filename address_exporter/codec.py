"""Fixed ABI encodings for the read-only calls the exporter makes.

Only the handful of selectors the probes need are covered here. Payloads are
built as plain hex strings and results come back from the node as hex
strings, so nothing in this module touches bytes beyond string decoding.
"""
from typing import List, Union

from .exceptions import DecodeError

# balanceOf(address)
SELECTOR_BALANCE_OF = '0x70a08231'
# balanceOf(address,uint256)
SELECTOR_BALANCE_OF_ID = '0x00fdd58e'
# symbol()
SELECTOR_SYMBOL = '0x95d89b41'
# convertToAssets(uint256)
SELECTOR_CONVERT_TO_ASSETS = '0x07a2d13a'
# latestAnswer()
SELECTOR_LATEST_ANSWER = '0x50d25bcd'
# getReserves()
SELECTOR_GET_RESERVES = '0x0902f1ac'

WORD_HEX_LENGTH = 64
WORD_BYTE_LENGTH = 32


def strip_hex_prefix(value: str) -> str:
    if value[:2] in ('0x', '0X'):
        return value[2:]
    return value


def pad_word(value: Union[str, int]) -> str:
    """Left-pad a hex value or an unsigned integer to a 32 byte word.

    Addresses lose their ``0x`` prefix and checksum casing. Values that are
    already longer than a word are returned unchanged.
    """
    if isinstance(value, int):
        digits = format(value, 'x')
    else:
        digits = strip_hex_prefix(value).lower()
    return digits.rjust(WORD_HEX_LENGTH, '0')


def encode_call(selector: str, *args: Union[str, int]) -> str:
    return '0x' + strip_hex_prefix(selector) + ''.join(pad_word(arg) for arg in args)


def decode_numeric(value: str) -> float:
    """Decode a hex integer result into a float.

    Unparsable input decodes to 0.0 instead of raising, so a node returning
    ``0x`` for a missing contract shows up as a zero balance. Values too large
    for a float saturate to infinity.
    """
    try:
        number = int(value, 16)
    except (TypeError, ValueError):
        return 0.0
    try:
        return float(number)
    except OverflowError:
        return float('inf')


def decode_words(value: str, count: int) -> List[float]:
    """Split a packed result into ``count`` words and decode each one."""
    body = strip_hex_prefix(value or '')
    words = []
    for index in range(count):
        word = body[index * WORD_HEX_LENGTH:(index + 1) * WORD_HEX_LENGTH]
        words.append(decode_numeric('0x' + word))
    return words


def _trim(raw: bytes) -> str:
    return raw.strip(b'\x00').strip().decode('utf-8', errors='replace')


def decode_abi_string(value: str) -> str:
    """Decode a dynamic ABI string result such as the one ``symbol()`` returns.

    The standard layout is an offset word, a length word, then the padded
    string bytes. Contracts that return a bytes32 (or anything else shorter
    or inconsistent) fall back to the raw buffer with NUL padding trimmed.
    """
    try:
        raw = bytes.fromhex(strip_hex_prefix(value))
    except (TypeError, ValueError) as e:
        raise DecodeError(f'invalid hex string {value!r}: {e}') from e

    if len(raw) < 2 * WORD_BYTE_LENGTH:
        return _trim(raw)

    length = int.from_bytes(raw[WORD_BYTE_LENGTH:2 * WORD_BYTE_LENGTH], 'big')
    if length <= 0 or length > len(raw) - 2 * WORD_BYTE_LENGTH:
        return _trim(raw)

    start = 2 * WORD_BYTE_LENGTH
    return raw[start:start + length].decode('utf-8', errors='replace')
