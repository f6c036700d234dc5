"""JAX CHIP-8 virtual machine."""

from vipax.config import EmulatorConfig, load_config
from vipax.state import EmulatorState, StackState, create_state
from vipax.emulator import (
    execute, fetch, cycle, step, run, run_n_instruction, load_rom, load_program,
    set_keypad, set_pressed_keys, tick_timers, sound_active, raise_for_fault, clear_fault, is_halted,
)
from vipax.decode import DecodedInstruction, decode
from vipax.errors import (
    Chip8Error, LoadError, UnknownOpcode, MachineFault, StackOverflow, StackUnderflow, OutOfBoundsAccess,
)
from vipax.constants import *
from vipax.machine import Machine
from vipax.rendering import display_intensity, save_frame

__all__ = [
    "EmulatorConfig",
    "load_config",
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "cycle",
    "step",
    "run",
    "run_n_instruction",
    "load_rom",
    "load_program",
    "set_keypad",
    "set_pressed_keys",
    "tick_timers",
    "sound_active",
    "raise_for_fault",
    "clear_fault",
    "is_halted",
    "DecodedInstruction",
    "decode",
    "Chip8Error",
    "LoadError",
    "UnknownOpcode",
    "MachineFault",
    "StackOverflow",
    "StackUnderflow",
    "OutOfBoundsAccess",
    "Machine",
    "PROGRAM_START",
    "FONT_START",
    "FONT_DATA",
    "MEMORY_SIZE",
    "MAX_PROGRAM_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "STACK_SIZE",
    "display_intensity",
    "save_frame",
]
