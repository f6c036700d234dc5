"""Stateful host-facing wrapper around the functional emulator."""

from typing import Callable, Iterable, List, Optional, Union

import jax
import numpy as np

from vipax.config import EmulatorConfig
from vipax.state import EmulatorState, create_state
from vipax.emulator import (
    step, run, load_program, load_rom, set_keypad, set_pressed_keys, tick_timers, sound_active,
    clear_fault,
)
from vipax.errors import MachineFault
from vipax.logging import logger
from vipax.rendering import display_intensity


class Machine:
    """CHIP-8 machine for interactive hosts.

    Holds the current EmulatorState and forwards to the pure functions in
    ``vipax.emulator``. Hosts register ``on_sound_change`` callbacks to be
    told when the tone should start (True) or stop (False).

    Example:
        machine = Machine()
        machine.load_rom("pong.ch8")
        while running:
            machine.set_pressed_keys(pressed_codes)
            machine.run_frame()
            draw(machine.display_intensity)
    """

    def __init__(self, config: Optional[EmulatorConfig] = None, rng: Optional[jax.Array] = None):
        self.config = config or EmulatorConfig()
        self._rng = rng
        self._reload: Optional[Callable[[EmulatorState], EmulatorState]] = None
        self.on_sound_change: List[Callable[[bool], None]] = []
        self.state: EmulatorState = create_state(rng, self.config)
        self._sound_was_active = False

    @property
    def instructions_per_frame(self) -> int:
        return self.config.instructions_per_frame

    def load_program(self, data: Union[bytes, bytearray, Iterable[int]]):
        """Load program bytes. On LoadError the machine is left as it was."""
        program = bytes(data) if isinstance(data, (bytes, bytearray)) else list(data)
        self.state = load_program(self.state, program)
        self._reload = lambda state: load_program(state, program)

    def load_rom(self, filename: str):
        """Load a ROM file. On LoadError the machine is left as it was."""
        self.state = load_rom(self.state, filename)
        self._reload = lambda state: load_rom(state, filename)

    def reset(self):
        """Return to power-on state, reloading the last program."""
        self.state = create_state(self._rng, self.config)
        if self._reload is not None:
            self.state = self._reload(self.state)
        self._update_sound()

    def set_keys(self, keys):
        """Refresh the keypad from 16 per-key flags indexed by key code."""
        self.state = set_keypad(self.state, keys)

    def set_pressed_keys(self, codes: Iterable[int]):
        """Refresh the keypad from the codes of the keys held down."""
        self.state = set_pressed_keys(self.state, codes)

    def step(self, strict: bool = False):
        """Execute one instruction.

        With ``strict``, an undefined instruction raises UnknownOpcode and the
        machine keeps the state from before it.
        """
        self.state = self._checked(step, strict=strict)

    def run(self, n: int, progress: bool = False):
        """Execute ``n`` instructions in one compiled batch."""
        self.state = self._checked(run, n, progress=progress)

    def tick_timers(self):
        """Decrement delay and sound timers; call at the timer frequency."""
        self.state = tick_timers(self.state)
        self._update_sound()

    def run_frame(self):
        """Run one timer period worth of instructions followed by a timer tick."""
        self.run(self.instructions_per_frame)
        self.tick_timers()

    def resume(self, skip: bool = False):
        """Clear a fault, optionally skipping the faulting instruction."""
        self.state = clear_fault(self.state, skip=skip)

    @property
    def display(self):
        """The (64, 32) boolean display, indexed [x, y]."""
        return self.state.display

    @property
    def display_intensity(self) -> np.ndarray:
        """Row-major (32, 64) uint8 frame, 255 for lit pixels."""
        return display_intensity(self.state.display)

    @property
    def sound_active(self) -> bool:
        return sound_active(self.state)

    def _checked(self, fn, *args, **kwargs) -> EmulatorState:
        try:
            state = fn(self.state, *args, **kwargs)
        except MachineFault as fault:
            # Keep the halted state so the host can inspect or resume it
            self.state = fault.state
            self._update_sound()
            raise
        self.state = state
        self._update_sound()
        return state

    def _update_sound(self):
        active = self.sound_active
        if active == self._sound_was_active:
            return
        self._sound_was_active = active
        logger.debug(f"Sound {'on' if active else 'off'}")
        for callback in self.on_sound_change:
            callback(active)
