"""CHIP-8 display operations."""

import jax
import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE, FLAG_REGISTER, FAULT_OUT_OF_BOUNDS
from vipax.instructions.system import signal_fault

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(memory: jnp.ndarray, address: jnp.ndarray, sprite_x: jnp.ndarray,
                sprite_y: jnp.ndarray, height: int) -> jnp.ndarray:
    """Boolean (width, height) mask of the set sprite bits that land on screen.

    Rows past the bottom edge and columns past the right edge are clipped,
    never wrapped.
    """
    in_screen = (xx >= sprite_x) & (xx < sprite_x + 8) & (yy >= sprite_y) & (yy < sprite_y + height)

    row_offset = jnp.clip(yy - sprite_y, 0, 15)
    col_offset = jnp.clip(xx - sprite_x, 0, 7)
    sprite_bytes = memory[jnp.clip(address + row_offset, 0, MEMORY_SIZE - 1)]
    bits = (sprite_bytes >> (7 - col_offset)) & 1
    return (bits == 1) & in_screen


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N."""
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT
    address = jnp.astype(state.I, jnp.int32)

    rows_read = jnp.minimum(instruction.n, SCREEN_HEIGHT - sprite_y)
    out_of_bounds = (rows_read > 0) & (address + rows_read > MEMORY_SIZE)

    def _draw(state):
        sprite = sprite_mask(state.memory, address, sprite_x, sprite_y, instruction.n)
        collision = jnp.any(state.display & sprite)
        return state.replace(
            display=state.display ^ sprite,
            V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
        )

    return jax.lax.cond(
        out_of_bounds,
        lambda state: signal_fault(state, FAULT_OUT_OF_BOUNDS),
        _draw,
        state
    )
