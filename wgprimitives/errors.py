"""Exceptions raised by the cryptographic primitives."""


class WireGuardError(Exception):
    """Base class for every error raised by this package."""


class InvalidMac(WireGuardError):
    """A message authentication code did not match."""


class InvalidAeadTag(WireGuardError):
    """An AEAD authentication tag did not verify."""


class WrongKey(WireGuardError):
    """A key was malformed, degenerate or otherwise unusable."""