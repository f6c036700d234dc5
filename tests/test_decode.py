"""Tests for opcode field extraction."""

import jax.numpy as jnp
from vipax import decode


def test_fields_of_draw_opcode():
    decoded = decode(0xD12F)

    assert decoded.word == 0xD12F
    assert decoded.group == 0xD
    assert decoded.x == 0x1
    assert decoded.y == 0x2
    assert decoded.n == 0xF
    assert decoded.nn == 0x2F
    assert decoded.nnn == 0x12F


def test_fields_are_uint16():
    decoded = decode(0x8AB6)

    for field in (decoded.word, decoded.group, decoded.x, decoded.y, decoded.n, decoded.nn, decoded.nnn):
        assert field.dtype == jnp.uint16
