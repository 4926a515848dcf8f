import struct

import pytest

from wgprimitives.chacha20poly1305 import ChaCha20Poly1305, chacha20_block
from wgprimitives.errors import InvalidAeadTag, WireGuardError

KEY = bytes(range(32))
SIGMA = (0x6170_7865, 0x3320_646E, 0x7962_2D32, 0x6B20_6574)


def test_block_function_rfc8439_vector():
    nonce = bytes.fromhex("000000090000004a00000000")
    state = [*SIGMA, *struct.unpack("<8I", KEY), 1, *struct.unpack("<3I", nonce)]
    out = struct.pack("<16I", *chacha20_block(state, False))
    assert out == bytes.fromhex(
        "10f1e7e4d13b5915500fdd1fa32071c4c7d1f4c733c068030422aa9ac3d46c4e"
        "d2826446079faa0914c2d705d98b02a2b5129cd1de164eb9cbd083e8a2503c4e"
    )


def test_block_function_rejects_wrong_state_size():
    with pytest.raises(ValueError):
        chacha20_block([0] * 15, False)


def test_hchacha_differs_from_block_by_input_addition():
    state = [*SIGMA, *struct.unpack("<8I", KEY), 7, 8, 9, 10]
    full = chacha20_block(state, False)
    core = chacha20_block(state, True)
    assert [(c + s) & 0xFFFF_FFFF for c, s in zip(core, state)] == full


def test_seal_rfc8439_aead_vector():
    key = bytes(range(0x80, 0xA0))
    nonce = bytes.fromhex("070000004041424344454647")
    aad = bytes.fromhex("50515253c0c1c2c3c4c5c6c7")
    plaintext = (
        b"Ladies and Gentlemen of the class of '99: If I could offer you only one "
        b"tip for the future, sunscreen would be it."
    )
    sealed = ChaCha20Poly1305(key).seal(nonce, aad, plaintext)
    assert sealed[:-16] == bytes.fromhex(
        "d31a8d34648e60db7b86afbc53ef7ec2a4aded51296e08fea9e2b5a736ee62d6"
        "3dbea45e8ca9671282fafb69da92728b1a71de0a9e060b2905d6a5b67ecd3b36"
        "92ddbd7f2d778b8c9803aee328091b58fab324e4fad675945585808b4831d7bc"
        "3ff4def08e4b7a9de576d26586cec64b6116"
    )
    assert sealed[-16:] == bytes.fromhex("1ae10b594f09e26a7e902ecbd0600691")
    assert ChaCha20Poly1305(key).open(nonce, aad, sealed) == plaintext


@pytest.mark.parametrize("length", [0, 1, 15, 16, 17, 63, 64, 65, 127, 128, 129, 300])
def test_seal_open_round_trip(length):
    aead = ChaCha20Poly1305(KEY)
    nonce = bytes(range(12))
    plaintext = bytes((i * 7) & 0xFF for i in range(length))
    sealed = aead.seal(nonce, b"header", plaintext)
    assert len(sealed) == length + 16
    assert aead.open(nonce, b"header", sealed) == plaintext


@pytest.mark.parametrize("length", [0, 5, 64, 200])
def test_wg_round_trip(length):
    aead = ChaCha20Poly1305(KEY)
    plaintext = bytes(range(256))[:length] * 1
    sealed = aead.seal_wg(42, b"", plaintext)
    assert aead.open_wg(42, b"", sealed) == plaintext


def test_wg_counter_matches_ietf_nonce_layout():
    aead = ChaCha20Poly1305(KEY)
    counter = 0x0102_0304_0506_0708
    nonce = b"\0" * 4 + counter.to_bytes(8, "little")
    message = b"some transport data" * 5
    assert aead.seal_wg(counter, b"ad", message) == aead.seal(nonce, b"ad", message)


@pytest.mark.parametrize("length", [0, 33, 64, 130])
def test_xseal_round_trip(length):
    aead = ChaCha20Poly1305(KEY)
    nonce = bytes(range(100, 124))
    plaintext = b"\xaa" * length
    sealed = aead.xseal(nonce, b"cookie", plaintext)
    assert len(sealed) == length + 16
    assert aead.xopen(nonce, b"cookie", sealed) == plaintext


def test_xseal_uses_hchacha_subkey():
    nonce = bytes(range(100, 124))
    sub = chacha20_block([*SIGMA, *struct.unpack("<8I", KEY), *struct.unpack("<4I", nonce[:16])], True)
    subkey = struct.pack("<8I", *sub[:4], *sub[12:])
    inner_nonce = b"\0" * 4 + nonce[16:]
    message = b"extended nonce message"
    assert ChaCha20Poly1305(KEY).xseal(nonce, b"x", message) == ChaCha20Poly1305(subkey).seal(
        inner_nonce, b"x", message
    )


def test_tampered_ciphertext_raises():
    aead = ChaCha20Poly1305(KEY)
    sealed = bytearray(aead.seal(bytes(12), b"", b"attack at dawn"))
    sealed[0] ^= 1
    with pytest.raises(InvalidAeadTag):
        aead.open(bytes(12), b"", bytes(sealed))


def test_tampered_tag_raises():
    aead = ChaCha20Poly1305(KEY)
    sealed = bytearray(aead.seal_wg(1, b"", b"payload"))
    sealed[-1] ^= 0x80
    with pytest.raises(InvalidAeadTag):
        aead.open_wg(1, b"", bytes(sealed))


def test_wrong_aad_raises():
    aead = ChaCha20Poly1305(KEY)
    sealed = aead.xseal(bytes(24), b"right", b"payload")
    with pytest.raises(WireGuardError):
        aead.xopen(bytes(24), b"wrong", sealed)


def test_wrong_counter_raises():
    aead = ChaCha20Poly1305(KEY)
    sealed = aead.seal_wg(5, b"", b"payload")
    with pytest.raises(InvalidAeadTag):
        aead.open_wg(6, b"", sealed)


def test_different_nonces_give_different_ciphertexts():
    aead = ChaCha20Poly1305(KEY)
    assert aead.seal_wg(0, b"", b"same text") != aead.seal_wg(1, b"", b"same text")


def test_short_ciphertext_rejected():
    with pytest.raises(ValueError):
        ChaCha20Poly1305(KEY).open(bytes(12), b"", b"short")


@pytest.mark.parametrize("size", [0, 16, 31, 33])
def test_bad_key_length(size):
    with pytest.raises(ValueError):
        ChaCha20Poly1305(bytes(size))


def test_bad_nonce_lengths():
    aead = ChaCha20Poly1305(KEY)
    with pytest.raises(ValueError):
        aead.seal(bytes(11), b"", b"data")
    with pytest.raises(ValueError):
        aead.xseal(bytes(12), b"", b"data")
    with pytest.raises(ValueError):
        aead.seal_wg(1 << 64, b"", b"data")