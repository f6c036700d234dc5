"""Exceptions raised by the CHIP-8 machine."""

from vipax.constants import FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW, FAULT_OUT_OF_BOUNDS


class Chip8Error(Exception):
    """Base class for all machine errors."""


class LoadError(Chip8Error):
    """Program could not be loaded into memory."""


class UnknownOpcode(Chip8Error):
    """Fetched instruction has no defined operation."""

    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"Unknown opcode 0x{opcode:04X} at 0x{pc:03X}")


class MachineFault(Chip8Error):
    """Structural fault that halted execution.

    Attributes:
        state: The halted state. Its PC points at the faulting instruction.
        pc: Address of the faulting instruction
        opcode: Raw faulting instruction (0 when the fetch itself faulted)
    """

    description = "Machine fault"

    def __init__(self, state, pc: int, opcode: int):
        self.state = state
        self.pc = pc
        self.opcode = opcode
        super().__init__(f"{self.description} at 0x{pc:03X} (opcode 0x{opcode:04X})")


class StackOverflow(MachineFault):
    description = "Call stack overflow"


class StackUnderflow(MachineFault):
    description = "Return with empty call stack"


class OutOfBoundsAccess(MachineFault):
    description = "Memory access out of bounds"


FAULT_EXCEPTIONS = {
    FAULT_STACK_OVERFLOW: StackOverflow,
    FAULT_STACK_UNDERFLOW: StackUnderflow,
    FAULT_OUT_OF_BOUNDS: OutOfBoundsAccess,
}
