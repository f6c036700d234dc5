"""Main CHIP-8 emulator execution engine.

``fetch``, ``execute``, ``cycle`` and ``run_n_instruction`` are pure and
jit-compatible; structural faults are recorded in ``state.fault`` and
halt the machine. ``step`` and ``run`` are the host-facing entry points:
they execute compiled code, then log undefined instructions and raise
the matching ``MachineFault`` for a halted state.
"""

from functools import partial
from typing import Iterable, Optional, Union

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from vipax.state import EmulatorState
from vipax.decode import decode
from vipax.constants import MEMORY_SIZE, PROGRAM_START, MAX_PROGRAM_SIZE, NUM_KEYS, FAULT_NONE, FAULT_OUT_OF_BOUNDS
from vipax.errors import LoadError, UnknownOpcode, FAULT_EXCEPTIONS
from vipax.logging import logger, scan_with_progress
from vipax.instructions.system import execute_system_instruction
from vipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset_vx,
    execute_jump_with_offset_v0, execute_skip_if_key
)
from vipax.instructions.alu import execute_alu_operation
from vipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from vipax.instructions.display import execute_display
from vipax.instructions.misc import execute_misc_instruction


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    PC is expected to already point past the instruction.
    """
    decoded_instruction = decode(instruction)
    state = state.replace(opcode=decoded_instruction.word)

    return jax.lax.switch(
        decoded_instruction.group,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset_vx if state.jump_uses_vx else execute_jump_with_offset_v0,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory and advance PC by 2.

    A PC whose two instruction bytes do not fit in memory halts the machine
    with FAULT_OUT_OF_BOUNDS and leaves PC in place.
    """
    def _fetch(state):
        instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
        return state.replace(pc=state.pc + 2), instruction

    def _fault(state):
        return state.replace(
            fault=jnp.asarray(FAULT_OUT_OF_BOUNDS, dtype=jnp.uint8),
            opcode=jnp.zeros((), dtype=jnp.uint16),
        ), jnp.zeros((), dtype=jnp.uint16)

    out_of_bounds = jnp.astype(state.pc, jnp.int32) + 1 >= MEMORY_SIZE
    return jax.lax.cond(out_of_bounds, _fault, _fetch, state)


def is_halted(state: EmulatorState) -> jnp.ndarray:
    return state.fault != FAULT_NONE


def cycle(state: EmulatorState) -> EmulatorState:
    """Fetch and execute one instruction. A halted state is returned unchanged."""
    def _cycle(state):
        state, instruction = fetch(state)
        return jax.lax.cond(
            is_halted(state),
            lambda state, instruction: state,
            execute,
            state, instruction
        )

    return jax.lax.cond(is_halted(state), lambda state: state, _cycle, state)


def run_instruction(state: EmulatorState, _) -> tuple[EmulatorState, None]:
    """``jax.lax.scan`` body running one instruction."""
    return cycle(state), None


@partial(jax.jit, static_argnums=1)
def run_n_instruction(state: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` instructions in a single compiled scan."""
    state, _ = jax.lax.scan(run_instruction, state, length=n)
    return state


def run_n_instruction_with_progress(state: EmulatorState, n: int, print_rate: Optional[int] = None) -> EmulatorState:
    """Run ``n`` instructions with a tqdm progress bar."""
    @scan_with_progress(n, print_rate=print_rate)
    def body(state, _):
        return run_instruction(state, _)

    state, _ = jax.jit(lambda state: jax.lax.scan(body, state, jnp.arange(n)))(state)
    return state


_jitted_cycle = jax.jit(cycle)


def raise_for_fault(state: EmulatorState) -> EmulatorState:
    """Raise the MachineFault matching ``state.fault``, if any."""
    fault = int(state.fault)
    if fault == FAULT_NONE:
        return state
    exception = FAULT_EXCEPTIONS[fault](state, int(state.pc), int(state.opcode))
    logger.error(str(exception))
    raise exception


def clear_fault(state: EmulatorState, skip: bool = False) -> EmulatorState:
    """Resume a halted state, optionally stepping over the faulting instruction."""
    pc = state.pc + 2 if skip else state.pc
    return state.replace(fault=jnp.asarray(FAULT_NONE, dtype=jnp.uint8), pc=pc)


def _report_unknown(before: int, state: EmulatorState, strict: bool = False):
    count = int(state.unknown_opcodes) - before
    if count <= 0:
        return
    opcode = int(state.last_unknown_opcode)
    if strict:
        raise UnknownOpcode(opcode, int(state.pc) - 2)
    if count == 1:
        logger.warning(f"Unknown opcode 0x{opcode:04X} ignored")
    else:
        logger.warning(f"{count} unknown opcodes ignored (last 0x{opcode:04X})")


def step(state: EmulatorState, strict: bool = False) -> EmulatorState:
    """Advance the machine by one instruction.

    Args:
        state: Current state
        strict: Raise UnknownOpcode instead of logging undefined instructions

    Raises:
        StackOverflow, StackUnderflow, OutOfBoundsAccess: the step faulted.
            The exception carries the halted state.
    """
    before = int(state.unknown_opcodes)
    state = _jitted_cycle(state)
    _report_unknown(before, state, strict)
    return raise_for_fault(state)


def run(state: EmulatorState, n: int, progress: bool = False) -> EmulatorState:
    """Run up to ``n`` instructions; execution stops at the first fault."""
    before = int(state.unknown_opcodes)
    if progress:
        state = run_n_instruction_with_progress(state, n)
    else:
        state = run_n_instruction(state, n)
    _report_unknown(before, state)
    return raise_for_fault(state)


def load_program(state: EmulatorState, data: Union[bytes, bytearray, Iterable[int]]) -> EmulatorState:
    """Copy program bytes into memory starting at 0x200."""
    try:
        rom_data = bytes(data)
    except (TypeError, ValueError) as e:
        raise LoadError(f"Program is not a byte sequence: {e}") from e
    if len(rom_data) > MAX_PROGRAM_SIZE:
        raise LoadError(
            f"Program is {len(rom_data)} bytes, at most {MAX_PROGRAM_SIZE} fit in memory"
        )
    rom_array = jnp.asarray(np.frombuffer(rom_data, dtype=np.uint8))
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    logger.debug(f"Loaded {len(rom_data)} program bytes at 0x{PROGRAM_START:03X}")
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    try:
        with open(filename, 'rb') as f:
            rom_data = f.read()
    except OSError as e:
        raise LoadError(f"Cannot read ROM '{filename}': {e}") from e
    logger.info(f"Loading ROM {filename}")
    return load_program(state, rom_data)


def set_keypad(state: EmulatorState, keys: Iterable) -> EmulatorState:
    """Refresh the input state from 16 per-key flags indexed by key code.

    Any truthy entry marks its key as pressed, so boolean masks and 0/1
    key buffers are read the same way.
    """
    pressed = np.asarray(keys if hasattr(keys, "shape") else list(keys)).astype(np.bool_)
    if pressed.shape != (NUM_KEYS,):
        raise ValueError(f"Expected {NUM_KEYS} key states, got shape {pressed.shape}")
    return state.replace(previous_keypad=state.keypad, keypad=jnp.asarray(pressed))


def set_pressed_keys(state: EmulatorState, codes: Iterable[int]) -> EmulatorState:
    """Refresh the input state from the codes of the keys currently held down."""
    pressed = np.zeros(NUM_KEYS, dtype=np.bool_)
    for code in codes:
        if not 0 <= int(code) < NUM_KEYS:
            raise ValueError(f"Key code {code!r} is outside 0x0-0xF")
        pressed[int(code)] = True
    return set_keypad(state, pressed)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement both timers by one, stopping at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def sound_active(state: EmulatorState) -> bool:
    """Whether the host should be playing the tone."""
    return bool(state.sound_timer > 0)
