"""ChaCha20-Poly1305 and XChaCha20-Poly1305 authenticated encryption."""

from __future__ import annotations

import hmac
import struct
from collections.abc import Iterator, Sequence

from .errors import InvalidAeadTag
from .poly1305 import Poly1305

_MASK32 = 0xFFFF_FFFF
_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_BLOCK = 64
_TAG = 16
_SIGMA = (0x6170_7865, 0x3320_646E, 0x7962_2D32, 0x6B20_6574)

# Column quarter-rounds followed by diagonal quarter-rounds.
_QUARTER_ROUNDS = (
    (0, 4, 8, 12),
    (1, 5, 9, 13),
    (2, 6, 10, 14),
    (3, 7, 11, 15),
    (0, 5, 10, 15),
    (1, 6, 11, 12),
    (2, 7, 8, 13),
    (3, 4, 9, 14),
)


def _rotl(x: int, n: int) -> int:
    return ((x << n) | (x >> (32 - n))) & _MASK32


def chacha20_block(state: Sequence[int], hchacha: bool) -> list[int]:
    """Run the ChaCha20 block function on a 16-word state.

    With ``hchacha`` set the input is not added back, giving the HChaCha20 output.
    """
    if len(state) != 16:
        raise ValueError("a ChaCha20 state has 16 words")
    initial = [int(w) & _MASK32 for w in state]
    x = list(initial)
    for _ in range(10):
        for a, b, c, d in _QUARTER_ROUNDS:
            x[a] = (x[a] + x[b]) & _MASK32
            x[d] = _rotl(x[d] ^ x[a], 16)
            x[c] = (x[c] + x[d]) & _MASK32
            x[b] = _rotl(x[b] ^ x[c], 12)
            x[a] = (x[a] + x[b]) & _MASK32
            x[d] = _rotl(x[d] ^ x[a], 8)
            x[c] = (x[c] + x[d]) & _MASK32
            x[b] = _rotl(x[b] ^ x[c], 7)
    if hchacha:
        return x
    return [(v + w) & _MASK32 for v, w in zip(x, initial)]


def _keystream(state: list[int], length: int) -> bytes:
    """Keystream for the payload, starting one block after the Poly1305 key block."""
    blocks = []
    for n in range(1, (length + _BLOCK - 1) // _BLOCK + 1):
        counter_state = list(state)
        counter_state[12] = (state[12] + n) & _MASK32
        blocks.append(struct.pack("<16I", *chacha20_block(counter_state, False)))
    return b"".join(blocks)[:length]


def _xor(data: bytes, stream: bytes) -> bytes:
    if not data:
        return b""
    n = len(data)
    value = int.from_bytes(data, "little") ^ int.from_bytes(stream[:n], "little")
    return value.to_bytes(n, "little")


def _padded_blocks(data: bytes) -> Iterator[bytes]:
    for start in range(0, len(data), 16):
        yield data[start : start + 16].ljust(16, b"\0")


def _authenticate(state: list[int], aad: bytes, ciphertext: bytes) -> bytes:
    poly = Poly1305(chacha20_block(state, False)[:8])
    for block in _padded_blocks(aad):
        poly.hash_u8(block)
    for block in _padded_blocks(ciphertext):
        poly.hash_u8(block)
    poly.hash_u64([len(aad), len(ciphertext)])
    return poly.finalize()


class ChaCha20Poly1305:
    """The ChaCha20-Poly1305 AEAD with a fixed 256-bit key."""

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if len(key) != 32:
            raise ValueError("ChaCha20-Poly1305 key must be 32 bytes")
        self._key = struct.unpack("<8I", key)

    def _init_wg(self, nonce_ctr: int) -> list[int]:
        if not 0 <= nonce_ctr <= _MASK64:
            raise ValueError("nonce counter must fit in 64 bits")
        return [*_SIGMA, *self._key, 0, 0, nonce_ctr & _MASK32, nonce_ctr >> 32]

    def _init(self, nonce: bytes) -> list[int]:
        nonce = bytes(nonce)
        if len(nonce) != 12:
            raise ValueError("nonce must be 12 bytes")
        return [*_SIGMA, *self._key, 0, *struct.unpack("<3I", nonce)]

    def _init_x(self, nonce: bytes) -> list[int]:
        nonce = bytes(nonce)
        if len(nonce) != 24:
            raise ValueError("extended nonce must be 24 bytes")
        words = struct.unpack("<6I", nonce)
        sub = chacha20_block([*_SIGMA, *self._key, *words[:4]], True)
        return [*_SIGMA, *sub[:4], *sub[12:], 0, 0, *words[4:]]

    @staticmethod
    def _seal(state: list[int], aad: bytes, plaintext: bytes) -> bytes:
        plaintext = bytes(plaintext)
        ciphertext = _xor(plaintext, _keystream(state, len(plaintext)))
        return ciphertext + _authenticate(state, bytes(aad), ciphertext)

    @staticmethod
    def _open(state: list[int], aad: bytes, ciphertext: bytes) -> bytes:
        ciphertext = bytes(ciphertext)
        if len(ciphertext) < _TAG:
            raise ValueError("ciphertext is shorter than the authentication tag")
        body, tag = ciphertext[:-_TAG], ciphertext[-_TAG:]
        expected = _authenticate(state, bytes(aad), body)
        if not hmac.compare_digest(expected, tag):
            raise InvalidAeadTag("authentication tag mismatch")
        return _xor(body, _keystream(state, len(body)))

    def seal_wg(self, nonce_ctr: int, aad: bytes, plaintext: bytes) -> bytes:
        """Encrypt with a 64-bit counter nonce; returns ciphertext followed by the tag."""
        return self._seal(self._init_wg(nonce_ctr), aad, plaintext)

    def open_wg(self, nonce_ctr: int, aad: bytes, ciphertext: bytes) -> bytes:
        """Verify and decrypt a message sealed with :meth:`seal_wg`."""
        return self._open(self._init_wg(nonce_ctr), aad, ciphertext)

    def seal(self, nonce: bytes, aad: bytes, plaintext: bytes) -> bytes:
        """Encrypt with a 12-byte nonce; returns ciphertext followed by the tag."""
        return self._seal(self._init(nonce), aad, plaintext)

    def open(self, nonce: bytes, aad: bytes, ciphertext: bytes) -> bytes:
        """Verify and decrypt a message sealed with :meth:`seal`."""
        return self._open(self._init(nonce), aad, ciphertext)

    def xseal(self, nonce: bytes, aad: bytes, plaintext: bytes) -> bytes:
        """Encrypt with a 24-byte XChaCha20 nonce; returns ciphertext followed by the tag."""
        return self._seal(self._init_x(nonce), aad, plaintext)

    def xopen(self, nonce: bytes, aad: bytes, ciphertext: bytes) -> bytes:
        """Verify and decrypt a message sealed with :meth:`xseal`."""
        return self._open(self._init_x(nonce), aad, ciphertext)