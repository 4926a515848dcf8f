"""BLAKE2s, Poly1305, ChaCha20-Poly1305 and X25519 primitives for the WireGuard protocol."""

__version__ = "0.4.0"
__all__ = ["blake2s", "chacha20poly1305", "errors", "poly1305", "x25519"]