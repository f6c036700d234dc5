"""CHIP-8 emulator state structures."""

from typing import Optional

import jax
import jax.numpy as jnp
from flax.struct import PyTreeNode, field

from vipax.config import EmulatorConfig
from vipax.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, FAULT_NONE,
)


def _zeros(shape, dtype):
    return field(default_factory=lambda: jnp.zeros(shape, dtype=dtype))


class StackState(PyTreeNode):
    """Bounded call stack of return addresses."""
    data: jnp.ndarray = _zeros(STACK_SIZE, jnp.uint16)
    pointer: jnp.ndarray = _zeros((), jnp.uint8)


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    The display is indexed as ``display[x, y]``. ``previous_keypad`` is the
    key snapshot FX0A compares against to detect a fresh key press.
    ``fault`` holds one of the FAULT_* codes; a non-zero fault halts the
    machine until cleared.
    """
    rng: jax.Array
    memory: jnp.ndarray = _zeros(MEMORY_SIZE, jnp.uint8)
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = _zeros((SCREEN_WIDTH, SCREEN_HEIGHT), jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _zeros((), jnp.uint8)
    sound_timer: jnp.ndarray = _zeros((), jnp.uint8)
    keypad: jnp.ndarray = _zeros(NUM_KEYS, jnp.bool_)
    previous_keypad: jnp.ndarray = _zeros(NUM_KEYS, jnp.bool_)
    V: jnp.ndarray = _zeros(NUM_REGISTERS, jnp.uint8)
    I: jnp.ndarray = _zeros((), jnp.uint16)
    opcode: jnp.ndarray = _zeros((), jnp.uint16)
    fault: jnp.ndarray = field(default_factory=lambda: jnp.asarray(FAULT_NONE, dtype=jnp.uint8))
    unknown_opcodes: jnp.ndarray = _zeros((), jnp.uint32)
    last_unknown_opcode: jnp.ndarray = _zeros((), jnp.uint16)
    shift_uses_vy: bool = field(pytree_node=False, default=True)
    jump_uses_vx: bool = field(pytree_node=False, default=False)


def create_state(
    rng: Optional[jax.Array] = None,
    config: Optional[EmulatorConfig] = None,
) -> EmulatorState:
    """Create initial emulator state with font data loaded.

    Args:
        rng: PRNG key for CXNN. Derived from ``config.seed`` when omitted.
        config: Quirk and seed settings (defaults to EmulatorConfig())
    """
    config = config or EmulatorConfig()
    if rng is None:
        rng = jax.random.PRNGKey(config.seed)
    state = EmulatorState(
        rng=rng,
        shift_uses_vy=config.shift_uses_vy,
        jump_uses_vx=config.jump_uses_vx,
    )
    font = jnp.asarray(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))
