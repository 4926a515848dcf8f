"""Elliptic-curve Diffie-Hellman exchange over Curve25519."""

from __future__ import annotations

import base64
import binascii
import secrets
import string
from collections.abc import Sequence

from .errors import WrongKey

_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_MASK255 = (1 << 255) - 1
_MASK256 = (1 << 256) - 1
P25519 = (1 << 255) - 19
_A24 = 121_666
_BASE_POINT = bytes([9]) + bytes(31)
_HEX_DIGITS = frozenset(string.hexdigits)


def limbs_to_int(limbs: Sequence[int]) -> int:
    """Combine four little-endian 64-bit limbs into one integer."""
    if len(limbs) != 4:
        raise ValueError("a field element has 4 limbs")
    value = 0
    for shift, limb in enumerate(limbs):
        if not 0 <= limb <= _MASK64:
            raise ValueError("limbs must be 64-bit unsigned values")
        value |= limb << (64 * shift)
    return value


def int_to_limbs(value: int) -> tuple[int, int, int, int]:
    """Split a 256-bit integer into four little-endian 64-bit limbs."""
    if not 0 <= value <= _MASK256:
        raise ValueError("value does not fit in 256 bits")
    return (
        value & _MASK64,
        (value >> 64) & _MASK64,
        (value >> 128) & _MASK64,
        (value >> 192) & _MASK64,
    )


def _fold(value: int) -> int:
    """Fold the bits at and above 2^255 back in, multiplied by 19."""
    return (value & _MASK255) + 19 * (value >> 255)


def fe_add(x: int, y: int) -> int:
    """Addition modulo 2^255 - 19, leaving a partially reduced result."""
    return _fold(x + y)


def fe_sub(x: int, y: int) -> int:
    """Subtraction modulo 2^255 - 19, leaving a partially reduced result."""
    return _fold(4 * P25519 + x - y)


def fe_mul(x: int, y: int) -> int:
    """Multiplication modulo 2^255 - 19, leaving a partially reduced result."""
    product = x * y
    folded = (product & _MASK256) + 38 * (product >> 256)
    return _fold(folded)


def fe_sqr(x: int, rep: int = 1) -> int:
    """Square ``x`` modulo 2^255 - 19, ``rep`` times in a row."""
    for _ in range(rep):
        x = fe_mul(x, x)
    return x


def fe_inv(x: int) -> int:
    """Modular inverse by exponentiation to p - 2; zero maps to zero."""
    m1 = x
    m10 = fe_sqr(x, 1)
    m1001 = fe_mul(fe_sqr(m10, 2), m1)
    m1011 = fe_mul(m1001, m10)

    x5 = fe_mul(fe_sqr(m1011, 1), m1001)
    x10 = fe_mul(fe_sqr(x5, 5), x5)
    x20 = fe_mul(fe_sqr(x10, 10), x10)
    x40 = fe_mul(fe_sqr(x20, 20), x20)
    x50 = fe_mul(fe_sqr(x40, 10), x10)
    x100 = fe_mul(fe_sqr(x50, 50), x50)

    t = fe_mul(fe_sqr(x100, 100), x100)
    t2 = fe_mul(fe_sqr(t, 50), x50)
    return fe_mul(fe_sqr(t2, 5), m1011)


def fe_final(x: int) -> int:
    """Fully reduce a field element into the range [0, 2^255 - 19)."""
    value = _fold(x)
    return value - P25519 if value >= P25519 else value


def _cswap(a: int, b: int, swap: int) -> tuple[int, int]:
    mask = (-swap) & _MASK256
    diff = mask & (a ^ b)
    return a ^ diff, b ^ diff


def x25519_shared_key(peer_key: bytes, secret_key: bytes) -> bytes:
    """Run the Montgomery ladder: multiply the peer's point by the clamped scalar."""
    peer_key = bytes(peer_key)
    secret_key = bytes(secret_key)
    if len(peer_key) != 32 or len(secret_key) != 32:
        raise ValueError("Illegal values for x25519")

    scalar = bytearray(secret_key)
    scalar[0] &= 248
    scalar[31] &= 127
    scalar[31] |= 64

    u = int.from_bytes(peer_key, "little")
    x_1 = u
    x_2, z_2 = 1, 0
    x_3, z_3 = u, 1
    swap = 0

    for pos in range(254, -1, -1):
        bit = (scalar[pos // 8] >> (pos & 7)) & 1
        swap ^= bit
        x2, x3 = _cswap(x_2, x_3, swap)
        z2, z3 = _cswap(z_2, z_3, swap)
        swap = bit

        tmp0 = fe_sub(x3, z3)
        tmp1 = fe_sub(x2, z2)
        x2 = fe_add(x2, z2)
        z2 = fe_add(x3, z3)

        z3 = fe_mul(x2, tmp0)
        z2 = fe_mul(z2, tmp1)

        tmp0 = fe_sqr(tmp1)
        tmp1 = fe_sqr(x2)
        x3 = fe_add(z3, z2)
        z2 = fe_sub(z3, z2)

        x_2 = fe_mul(tmp1, tmp0)
        tmp1 = fe_sub(tmp1, tmp0)
        z2 = fe_sqr(z2)

        z3 = fe_mul(_A24, tmp1)
        x_3 = fe_sqr(x3)
        tmp0 = fe_add(tmp0, z3)

        z_3 = fe_mul(x_1, z2)
        z_2 = fe_mul(tmp1, tmp0)

    x2, _ = _cswap(x_2, x_3, swap)
    z2, _ = _cswap(z_2, z_3, swap)

    key = fe_final(fe_mul(x2, fe_inv(z2)))
    return key.to_bytes(32, "little")


def x25519_public_key(secret_key: bytes) -> bytes:
    """Compute the public key belonging to a 32-byte secret key."""
    return x25519_shared_key(_BASE_POINT, secret_key)


def _constant_time_key_compare(key1: bytes, key2: bytes, eq: bool) -> None:
    """Raise WrongKey if the keys differ (eq) or are equal (not eq)."""
    if len(key1) != 32 or len(key2) != 32:
        raise WrongKey("keys must be 32 bytes long")
    diff = 0
    for a, b in zip(key1, key2):
        diff |= a ^ b
    if (diff == 0) ^ eq:
        raise WrongKey("keys are equal" if not eq else "keys differ")


def _constant_time_zero_key_check(key: bytes) -> None:
    """Raise WrongKey if the key is not 32 bytes or is all zeroes."""
    if len(key) != 32:
        raise WrongKey("keys must be 32 bytes long")
    acc = 0
    for b in key:
        acc |= b
    if acc == 0:
        raise WrongKey("key is all zeroes")


def _parse_key(s: str) -> bytes:
    if len(s) == 64:
        if not set(s) <= _HEX_DIGITS:
            raise ValueError("Illegal character in key")
        return bytes.fromhex(s)
    if len(s) in (43, 44):
        padded = s + "=" * (-len(s) % 4)
        try:
            decoded = base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Illegal character in key") from exc
        if len(decoded) != 32:
            raise ValueError("Illegal character in key")
        return decoded
    raise ValueError("Illegal key size")


def _check_length(key_bytes: bytes) -> bytes:
    key_bytes = bytes(key_bytes)
    if len(key_bytes) != 32:
        raise ValueError("X25519 keys are 32 bytes long")
    return key_bytes


class X25519SecretKey:
    """A secret X25519 key."""

    __slots__ = ("_key",)

    def __init__(self, key_bytes: bytes) -> None:
        self._key = _check_length(key_bytes)

    @classmethod
    def generate(cls) -> X25519SecretKey:
        """Generate a new secret key from the operating system's random source."""
        return cls(secrets.token_bytes(32))

    @classmethod
    def from_str(cls, s: str) -> X25519SecretKey:
        """Parse a key from a 64-character hex or a 43/44-character base64 string."""
        return cls(_parse_key(s))

    def public_key(self) -> X25519PublicKey:
        """Compute the public key for this secret key."""
        return X25519PublicKey(x25519_public_key(self._key))

    def shared_key(self, peer_public: X25519PublicKey) -> bytes:
        """Derive the shared key with a remote peer's public key.

        Raises WrongKey if the peer key equals this secret key or the result is all zeroes.
        """
        peer = bytes(peer_public)
        shared = x25519_shared_key(peer, self._key)
        _constant_time_key_compare(self._key, peer, False)
        _constant_time_zero_key_check(shared)
        return shared

    def __bytes__(self) -> bytes:
        return self._key

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<hidden>)"


class X25519PublicKey:
    """A public X25519 key, derived from a secret key."""

    __slots__ = ("_key",)

    def __init__(self, key_bytes: bytes) -> None:
        self._key = _check_length(key_bytes)

    @classmethod
    def from_str(cls, s: str) -> X25519PublicKey:
        """Parse a key from a 64-character hex or a 43/44-character base64 string."""
        return cls(_parse_key(s))

    def constant_time_is_equal(self, other: X25519PublicKey) -> None:
        """Raise WrongKey unless ``other`` is the same key; compares in constant time."""
        _constant_time_key_compare(self._key, bytes(other), True)

    def __bytes__(self) -> bytes:
        return self._key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, X25519PublicKey):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._key.hex()!r})"