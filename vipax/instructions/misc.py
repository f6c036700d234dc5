"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import FONT_START, FONT_GLYPH_SIZE, FONT_DATA, MEMORY_SIZE, NUM_REGISTERS, FAULT_OUT_OF_BOUNDS
from vipax.instructions.system import signal_fault, execute_unknown


def _guard_address_range(last_offset_fn, operation):
    """Fault with FAULT_OUT_OF_BOUNDS when I + last offset leaves memory."""
    def guarded(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        last_address = jnp.astype(state.I, jnp.int32) + last_offset_fn(instruction)
        return jax.lax.cond(
            last_address >= MEMORY_SIZE,
            lambda state, instruction: signal_fault(state, FAULT_OUT_OF_BOUNDS),
            operation,
            state, instruction
        )
    guarded.__doc__ = operation.__doc__
    return guarded


def _writable(indices: jnp.ndarray) -> jnp.ndarray:
    """Redirect writes aimed at the font table out of memory so they are dropped."""
    in_font = (indices >= FONT_START) & (indices < FONT_START + len(FONT_DATA))
    return jnp.where(in_font, MEMORY_SIZE, indices)


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register (16-bit wrap, VF untouched)."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for a fresh key press and store its code in VX.

    Only keys that are down now but were up in ``previous_keypad`` count.
    Once reported, the press is acknowledged so it cannot complete another
    FX0A.
    """
    newly_pressed = state.keypad & ~state.previous_keypad

    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(newly_pressed), jnp.uint8)
        return state.replace(
            V=state.V.at[instruction.x].set(pressed_key),
            previous_keypad=state.keypad,
        )

    def wait_action(state):
        return state.replace(pc=state.pc - 2)

    return jax.lax.cond(jnp.any(newly_pressed), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to the address of the font glyph for digit VX."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    return state.replace(I=FONT_START + digit * FONT_GLYPH_SIZE)


def _bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = _writable(jnp.arange(3) + jnp.astype(state.I, jnp.int32))
    return state.replace(memory=state.memory.at[indices].set(digits, mode="drop"))


def _store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I. I is unchanged."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    # Registers past X are pointed outside memory so the scatter drops them
    indices = jnp.where(register_mask, jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS), MEMORY_SIZE)
    new_memory = state.memory.at[_writable(indices)].set(state.V, mode="drop")
    return state.replace(memory=new_memory)


def _load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I. I is unchanged."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.clip(state.I + jnp.arange(NUM_REGISTERS), 0, MEMORY_SIZE - 1)
    memory_values = state.memory[base_indices]
    return state.replace(V=jnp.where(register_mask, memory_values, state.V))


execute_bcd_conversion = _guard_address_range(lambda instruction: 2, _bcd_conversion)
execute_store_registers = _guard_address_range(lambda instruction: instruction.x, _store_registers)
execute_load_registers = _guard_address_range(lambda instruction: instruction.x, _load_registers)


MISC_OPERATIONS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}

# Maps the low byte to a handler slot; the final slot is the undefined handler
_MISC_CODES = tuple(MISC_OPERATIONS)
_MISC_SLOTS = np.full(256, len(_MISC_CODES), dtype=np.int32)
_MISC_SLOTS[list(_MISC_CODES)] = np.arange(len(_MISC_CODES))
_MISC_HANDLERS = [MISC_OPERATIONS[code] for code in _MISC_CODES] + [execute_unknown]


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch misc instructions through the low-byte lookup table."""
    return jax.lax.switch(
        jnp.asarray(_MISC_SLOTS)[instruction.nn],
        _MISC_HANDLERS,
        state, instruction
    )
