"""Poly1305 one-time authenticator over 64-bit limbs."""

from __future__ import annotations

import struct
from collections.abc import Sequence

_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_MASK128 = (1 << 128) - 1
_R_CLAMP_LO = 0x0FFF_FFFC_0FFF_FFFF
_R_CLAMP_HI = 0x0FFF_FFFC_0FFF_FFFC

_Felem = tuple[int, int, int]


def _add(acc: _Felem, x: _Felem) -> _Felem:
    """Add two three-limb field elements with carry propagation."""
    s0 = (acc[0] + x[0]) & _MASK128
    s1 = (acc[1] + x[1] + (s0 >> 64)) & _MASK128
    s2 = (acc[2] + x[2] + (s1 >> 64)) & _MASK128
    return s0 & _MASK64, s1 & _MASK64, s2 & _MASK64


def _mul(acc: _Felem, r: tuple[int, int]) -> tuple[int, int, int, int]:
    """Multiply by the clamped key, leaving a four-limb unreduced product."""
    a0, a1, a2 = acc
    k0, k1 = r

    t0 = (a0 * k0) & _MASK128
    t1 = (a1 * k0 + (t0 >> 64)) & _MASK128
    t2 = (a2 * k0 + (t1 >> 64)) & _MASK128
    t0 &= _MASK64
    t1 &= _MASK64
    t2 &= _MASK64

    t1 = (t1 + a0 * k1) & _MASK128
    top = t1 >> 64
    t1 &= _MASK64
    t2 = (t2 + top + a1 * k1) & _MASK128
    t3 = t2 >> 64
    t2 &= _MASK64
    t3 = (t3 + a2 * k1) & _MASK128

    return t0, t1, t2, t3 & _MASK64


def _reduce(n: tuple[int, int, int, int]) -> _Felem:
    """Partially reduce a four-limb value modulo 2^130 - 5."""
    acc0, acc1, acc2, n3 = n

    t0 = acc2 & 0xFFFF_FFFF_FFFF_FFFC
    t1 = n3
    t2 = ((acc2 >> 2) | (n3 << 62)) & _MASK64
    t3 = t1 >> 2

    acc2 &= 0x3

    acc0 = (acc0 + t0) & _MASK128
    acc1 = (acc1 + t1 + (acc0 >> 64)) & _MASK128
    acc2 = (acc2 + (acc1 >> 64)) & _MASK128

    acc0 &= _MASK64
    acc1 &= _MASK64
    acc2 &= _MASK64

    acc0 = (acc0 + t2) & _MASK128
    acc1 = (acc1 + t3 + (acc0 >> 64)) & _MASK128
    acc2 = (acc2 + (acc1 >> 64)) & _MASK128

    return acc0 & _MASK64, acc1 & _MASK64, acc2 & _MASK64


class Poly1305:
    """A Poly1305 MAC keyed by eight little-endian 32-bit key words."""

    def __init__(self, key_stream: Sequence[int]) -> None:
        if len(key_stream) < 8:
            raise ValueError("Poly1305 needs at least 8 key words")
        w = [int(v) & 0xFFFF_FFFF for v in key_stream[:8]]
        self._r = (
            (w[0] | (w[1] << 32)) & _R_CLAMP_LO,
            (w[2] | (w[3] << 32)) & _R_CLAMP_HI,
        )
        self._s = (w[4] | (w[5] << 32), w[6] | (w[7] << 32))
        self._acc: _Felem = (0, 0, 0)

    def _step(self, x0: int, x1: int) -> None:
        self._acc = _reduce(_mul(_add((x0, x1, 1), self._acc), self._r))

    def hash_u8(self, buf: bytes) -> None:
        """Absorb one full 16-byte block given as bytes."""
        if len(buf) < 16:
            raise ValueError("a Poly1305 block needs 16 bytes")
        x0, x1 = struct.unpack_from("<2Q", bytes(buf[:16]))
        self._step(x0, x1)

    def hash_u32(self, buf: Sequence[int]) -> None:
        """Absorb one full block given as four 32-bit words."""
        if len(buf) < 4:
            raise ValueError("a Poly1305 block needs 4 words")
        w = [int(v) & 0xFFFF_FFFF for v in buf[:4]]
        self._step(w[0] | (w[1] << 32), w[2] | (w[3] << 32))

    def hash_u64(self, buf: Sequence[int]) -> None:
        """Absorb one full block given as two 64-bit words."""
        if len(buf) < 2:
            raise ValueError("a Poly1305 block needs 2 words")
        self._step(int(buf[0]) & _MASK64, int(buf[1]) & _MASK64)

    def finalize(self) -> bytes:
        """Return the 16-byte authentication tag."""
        a0, a1, _ = _reduce((*self._acc, 0))
        s0, s1 = self._s
        acc0 = (a0 + s0) & _MASK128
        acc1 = (a1 + (acc0 >> 64) + s1) & _MASK128
        return struct.pack("<2Q", acc0 & _MASK64, acc1 & _MASK64)