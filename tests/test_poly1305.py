import struct

import pytest

from wgprimitives.poly1305 import Poly1305


def _words(key: bytes) -> list[int]:
    return list(struct.unpack("<8I", key))


def _key(r: bytes, s: bytes) -> list[int]:
    return _words(r.ljust(16, b"\x00") + s.ljust(16, b"\x00"))


def _tag(key_words, blocks) -> bytes:
    mac = Poly1305(key_words)
    for block in blocks:
        mac.hash_u8(block)
    return mac.finalize()


def test_rfc_vector_three_blocks():
    blocks = [
        b"\xff" * 16,
        b"\xf0" + b"\xff" * 15,
        b"\x11" + bytes(15),
    ]
    assert _tag(_key(b"\x01", b""), blocks) == b"\x05" + bytes(15)


def test_rfc_vector_wraps_to_p_minus_one():
    tag = _tag(_key(b"\x02", b""), [b"\xfd" + b"\xff" * 15])
    assert tag == b"\xfa" + b"\xff" * 15


def test_zero_r_gives_s_as_tag():
    s = bytes(range(100, 116))
    blocks = [bytes(range(i, i + 16)) for i in range(0, 80, 16)]
    assert _tag(_key(b"", s), blocks) == s


def test_empty_input_gives_s():
    s = bytes(range(16))
    assert _tag(_key(bytes(range(50, 66)), s), []) == s


def test_all_zero_key_and_data():
    assert _tag([0] * 8, [bytes(16)] * 4) == bytes(16)


def test_u8_u32_u64_inputs_agree():
    key = _words(bytes(range(1, 33)))
    block = bytes(range(200, 216))

    a = Poly1305(key)
    a.hash_u8(block)

    b = Poly1305(key)
    b.hash_u32(list(struct.unpack("<4I", block)))

    c = Poly1305(key)
    c.hash_u64(list(struct.unpack("<2Q", block)))

    assert a.finalize() == b.finalize() == c.finalize()


def test_r_is_clamped():
    s = bytes(range(16))
    unclamped = _key(b"\xff" * 16, s)
    clamped_r = struct.pack("<2Q", 0x0FFF_FFFC_0FFF_FFFF, 0x0FFF_FFFC_0FFF_FFFC)
    clamped = _key(clamped_r, s)
    blocks = [bytes(range(16)), b"\xab" * 16]
    assert _tag(unclamped, blocks) == _tag(clamped, blocks)


def test_extra_words_are_ignored():
    key = _words(bytes(range(32)))
    block = bytes(range(16))
    assert _tag(key + [1, 2, 3], [block]) == _tag(key, [block])


def test_block_order_matters():
    key = _words(bytes(range(7, 39)))
    a = bytes(range(16))
    b = bytes(range(16, 32))
    forward = _tag(key, [a, b])
    backward = _tag(key, [b, a])
    assert len(forward) == 16
    assert forward != backward


def test_short_key_rejected():
    with pytest.raises(ValueError):
        Poly1305([0] * 7)


def test_short_u8_block_rejected():
    mac = Poly1305([0] * 8)
    with pytest.raises(ValueError):
        mac.hash_u8(bytes(15))


def test_short_u32_block_rejected():
    mac = Poly1305([0] * 8)
    with pytest.raises(ValueError):
        mac.hash_u32([0, 0, 0])


def test_short_u64_block_rejected():
    mac = Poly1305([0] * 8)
    with pytest.raises(ValueError):
        mac.hash_u64([0])