"""Opcode field extraction.

An opcode word ``GXYN`` splits into its operation group ``G`` (the high
nibble), two register indices ``X`` and ``Y`` and the immediates ``N``,
``NN`` and ``NNN``. ``execute`` dispatches on ``group``; groups 0x0, 0x8,
0xE and 0xF select their operation again from ``n`` or ``nn``.
"""

import jax.numpy as jnp
from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    word: jnp.ndarray   # Full 16-bit opcode
    group: jnp.ndarray  # G___
    x: jnp.ndarray      # _X__
    y: jnp.ndarray      # __Y_
    n: jnp.ndarray      # ___N
    nn: jnp.ndarray     # __NN
    nnn: jnp.ndarray    # _NNN


def decode(word) -> DecodedInstruction:
    """Split an opcode word into uint16 fields."""
    word = jnp.asarray(word, dtype=jnp.uint16)
    return DecodedInstruction(
        word=word,
        group=word >> 12,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        nn=word & 0xFF,
        nnn=word & 0xFFF,
    )
