# wgprimitives

The cryptographic building blocks used by the WireGuard protocol, written in
plain Python with no dependencies beyond the standard library:

| Module | Contents |
| --- | --- |
| `wgprimitives.blake2s` | `Blake2s` (hash, keyed MAC, HMAC-BLAKE2s), `constant_time_mac_check` |
| `wgprimitives.poly1305` | `Poly1305` one-time authenticator |
| `wgprimitives.chacha20poly1305` | `ChaCha20Poly1305` AEAD (12-byte nonce, 24-byte XChaCha20 nonce, 64-bit counter nonce), `chacha20_block` |
| `wgprimitives.x25519` | `X25519SecretKey`, `X25519PublicKey`, `x25519_shared_key`, `x25519_public_key`, field helpers |
| `wgprimitives.errors` | `WireGuardError` and its subclasses `InvalidMac`, `InvalidAeadTag`, `WrongKey` |

The top-level package imports nothing; import the submodules directly.
These implementations aim at correctness and clarity, not speed, and make no
claim of resistance to timing side channels beyond the explicit
constant-time comparisons.

## Installation

```
pip install wgprimitives
```

## Usage

### BLAKE2s

```python
from wgprimitives.blake2s import Blake2s, constant_time_mac_check

digest = Blake2s.new_hash().update(b"abc").finalize()                    # 32 bytes
mac = Blake2s.new_mac(bytes(32)).update(b"Hello, World!").finalize()     # 16 bytes
tag = Blake2s.new_hmac(b"placeholder").update(b"data").finalize()        # 32 bytes

constant_time_mac_check(mac, mac)   # raises InvalidMac on mismatch or wrong length
```

`update` returns the context itself, so calls can be chained. Keys longer than
32 bytes (64 for HMAC) are truncated. `Blake2s(key, outlen, mac)` builds a
context directly; `outlen` is capped at 32.

### Poly1305

```python
from wgprimitives.poly1305 import Poly1305

poly = Poly1305([1, 2, 3, 4, 5, 6, 7, 8])   # eight 32-bit key words (r, then s)
poly.hash_u8(b"sixteen byte blk")            # one 16-byte block
poly.hash_u32([0, 0, 0, 0])                  # or four 32-bit words
poly.hash_u64([0, 0])                        # or two 64-bit words
tag = poly.finalize()                        # 16 bytes
```

Every `hash_*` call absorbs exactly one full block; padding is up to the caller.

### ChaCha20-Poly1305

```python
from wgprimitives.chacha20poly1305 import ChaCha20Poly1305
from wgprimitives.errors import InvalidAeadTag

aead = ChaCha20Poly1305(bytes(32))

sealed = aead.seal(bytes(12), b"header", b"message")    # ciphertext + 16-byte tag
assert aead.open(bytes(12), b"header", sealed) == b"message"

sealed = aead.seal_wg(7, b"", b"packet")                # 64-bit counter nonce
assert aead.open_wg(7, b"", sealed) == b"packet"

sealed = aead.xseal(bytes(24), b"", b"message")         # 24-byte extended nonce
assert aead.xopen(bytes(24), b"", sealed) == b"message"
```

Opening a message whose tag does not verify raises `InvalidAeadTag`. A key
that is not 32 bytes, a nonce of the wrong length, a counter outside 64 bits or
a ciphertext shorter than the tag raises `ValueError`.

### X25519

```python
from wgprimitives.x25519 import X25519SecretKey, X25519PublicKey

alice = X25519SecretKey.generate()
bob = X25519SecretKey.generate()

shared_a = alice.shared_key(bob.public_key())
shared_b = bob.shared_key(alice.public_key())
assert shared_a == shared_b

peer = X25519PublicKey.from_str(bytes(bob.public_key()).hex())
peer.constant_time_is_equal(bob.public_key())   # raises WrongKey if they differ
```

`shared_key` raises `WrongKey` when the peer key equals the secret key or the
result is all zeros. `from_str` accepts 64-character hex or 43/44-character
base64 and raises `ValueError` otherwise; `bytes(key)` gives the raw 32 bytes.
Public keys compare equal and hash by value; a secret key's `repr` hides it.

The module also exposes the field arithmetic modulo 2^255 - 19 on plain
integers (`fe_add`, `fe_sub`, `fe_mul`, `fe_sqr`, `fe_inv`, `fe_final`) and
conversion between integers and four 64-bit limbs (`limbs_to_int`,
`int_to_limbs`).

## What this package does not do

It provides only the primitives. There is no Noise handshake, no session or
key-rotation logic, no packet encoding, no tunnel device, no networking and no
command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```