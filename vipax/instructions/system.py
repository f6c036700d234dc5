"""CHIP-8 system instructions (0x0xxx) and shared handlers."""

import jax
import jax.lax
import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import FAULT_STACK_UNDERFLOW
from vipax.stack import pop, is_empty


def no_op(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """No operation."""
    return state


def signal_fault(state: EmulatorState, code: int) -> EmulatorState:
    """Halt on a structural fault, rewinding PC to the faulting instruction."""
    return state.replace(fault=jnp.asarray(code, dtype=jnp.uint8), pc=state.pc - 2)


def execute_unknown(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Record an undefined instruction and move on."""
    return state.replace(
        unknown_opcodes=state.unknown_opcodes + 1,
        last_unknown_opcode=jnp.astype(instruction.word, jnp.uint16),
    )


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    def _return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address)

    return jax.lax.cond(
        is_empty(state.stack),
        lambda state: signal_fault(state, FAULT_STACK_UNDERFLOW),
        _return,
        state
    )


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch system instructions. Any other 0NNN is ignored."""
    slot = jnp.where(instruction.word == 0x00E0, 0, jnp.where(instruction.word == 0x00EE, 1, 2))
    return jax.lax.switch(
        slot,
        [execute_clear_screen, execute_return, no_op],
        state, instruction
    )
