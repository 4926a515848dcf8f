"""BLAKE2s hash, keyed MAC and HMAC-BLAKE2s."""

from __future__ import annotations

import struct

from .errors import InvalidMac

_MASK32 = 0xFFFF_FFFF
_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_BLOCK = 64

_IV = (
    0x6A09_E667,
    0xBB67_AE85,
    0x3C6E_F372,
    0xA54F_F53A,
    0x510E_527F,
    0x9B05_688C,
    0x1F83_D9AB,
    0x5BE0_CD19,
)

_SIGMA = (
    (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15),
    (14, 10, 4, 8, 9, 15, 13, 6, 1, 12, 0, 2, 11, 7, 5, 3),
    (11, 8, 12, 0, 5, 2, 15, 13, 10, 14, 3, 6, 7, 1, 9, 4),
    (7, 9, 3, 1, 13, 12, 11, 14, 2, 6, 5, 10, 4, 0, 15, 8),
    (9, 0, 5, 7, 2, 4, 10, 15, 14, 1, 11, 12, 6, 8, 3, 13),
    (2, 12, 6, 10, 0, 11, 8, 3, 4, 13, 7, 5, 15, 14, 1, 9),
    (12, 5, 1, 15, 14, 13, 4, 10, 0, 7, 6, 3, 9, 2, 8, 11),
    (13, 11, 7, 14, 12, 1, 3, 9, 5, 0, 15, 4, 8, 6, 2, 10),
    (6, 15, 14, 9, 11, 3, 0, 8, 12, 2, 13, 7, 1, 4, 10, 5),
    (10, 2, 8, 4, 7, 6, 1, 5, 15, 11, 9, 14, 3, 12, 13, 0),
)

# (a, b, c, d) lanes for the four column steps followed by the four diagonal steps.
_LANES = (
    (0, 4, 8, 12),
    (1, 5, 9, 13),
    (2, 6, 10, 14),
    (3, 7, 11, 15),
    (0, 5, 10, 15),
    (1, 6, 11, 12),
    (2, 7, 8, 13),
    (3, 4, 9, 14),
)


def _rotr(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK32


def _compress(state: list[int], block: bytes, counter: int, last: bool) -> None:
    m = struct.unpack("<16I", block)
    v = list(state) + list(_IV)
    v[12] ^= counter & _MASK32
    v[13] ^= (counter >> 32) & _MASK32
    if last:
        v[14] ^= _MASK32

    for sigma in _SIGMA:
        for step, (a, b, c, d) in enumerate(_LANES):
            x = m[sigma[2 * step]]
            y = m[sigma[2 * step + 1]]
            v[a] = (v[a] + v[b] + x) & _MASK32
            v[d] = _rotr(v[d] ^ v[a], 16)
            v[c] = (v[c] + v[d]) & _MASK32
            v[b] = _rotr(v[b] ^ v[c], 12)
            v[a] = (v[a] + v[b] + y) & _MASK32
            v[d] = _rotr(v[d] ^ v[a], 8)
            v[c] = (v[c] + v[d]) & _MASK32
            v[b] = _rotr(v[b] ^ v[c], 7)

    for i in range(8):
        state[i] ^= v[i] ^ v[i + 8]


class Blake2s:
    """A context for multi-step BLAKE2s digest calculations."""

    def __init__(self, key: bytes, outlen: int, mac: bool) -> None:
        # Over-long keys are truncated silently, as the contexts are built internally.
        max_keylen = 64 if mac else 32
        key = bytes(key[:max_keylen])

        self._state = list(_IV)
        self._buf = bytearray(_BLOCK)
        self._key = bytearray(_BLOCK)
        self._used = 0
        self._hashed = 0
        self._outlen = min(outlen, 32)
        self._is_mac = mac

        self._state[0] ^= 0x0101_0000 ^ self._outlen

        if key:
            self._buf[: len(key)] = key
            self._used = _BLOCK
            if mac:
                self._key[: len(key)] = key
                self._buf = bytearray(b ^ 0x36 for b in self._buf)
                self._key = bytearray(b ^ 0x5C for b in self._key)
            else:
                self._state[0] ^= len(key) << 8

    @classmethod
    def new_mac(cls, key: bytes) -> Blake2s:
        """Return a keyed BLAKE2s context with a 16-byte output."""
        return cls(key, 16, False)

    @classmethod
    def new_hash(cls) -> Blake2s:
        """Return an unkeyed BLAKE2s context with a 32-byte output."""
        return cls(b"", 32, False)

    @classmethod
    def new_hmac(cls, key: bytes) -> Blake2s:
        """Return a context using the HMAC-BLAKE2s construction."""
        return cls(key, 32, True)

    def _consume_block(self, block: bytes) -> None:
        self._hashed = (self._hashed + _BLOCK) & _MASK64
        _compress(self._state, block, self._hashed, False)

    def update(self, data: bytes) -> Blake2s:
        """Add more data to the running hash and return the context."""
        view = memoryview(bytes(data))
        while view:
            while self._used == 0 and len(view) > _BLOCK:
                self._consume_block(bytes(view[:_BLOCK]))
                view = view[_BLOCK:]

            if self._used < _BLOCK:
                take = min(_BLOCK - self._used, len(view))
                self._buf[self._used : self._used + take] = view[:take]
                self._used += take
                view = view[take:]

            # The final block is held back until finalize() marks it as last.
            if self._used == _BLOCK and view:
                self._consume_block(bytes(self._buf))
                self._used = 0
        return self

    def finalize(self) -> bytes:
        """Compute and return the digest of everything hashed so far."""
        self._hashed = (self._hashed + self._used) & _MASK64
        self._buf[self._used :] = bytes(_BLOCK - self._used)
        self._used = _BLOCK
        _compress(self._state, bytes(self._buf), self._hashed, True)

        digest = struct.pack("<8I", *self._state)[: self._outlen]
        if self._is_mac:
            return Blake2s.new_hash().update(bytes(self._key)).update(digest).finalize()
        return digest


def constant_time_mac_check(mac1: bytes, mac2: bytes) -> None:
    """Raise InvalidMac unless both 16-byte MACs are equal; compares in constant time."""
    if len(mac1) != 16 or len(mac2) != 16:
        raise InvalidMac("MACs must be 16 bytes long")
    diff = 0
    for a, b in zip(mac1, mac2):
        diff |= a ^ b
    if diff:
        raise InvalidMac("MAC mismatch")