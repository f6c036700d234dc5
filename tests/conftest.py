"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from vipax import create_state, EmulatorConfig


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test (COSMAC VIP quirks)."""
    return create_state()


@pytest.fixture
def vy_shift_state():
    """Provide a fresh state where shifts read VY."""
    return create_state(config=EmulatorConfig(shift_uses_vy=True))


@pytest.fixture
def in_place_shift_state():
    """Provide a fresh state where shifts operate on VX only."""
    return create_state(config=EmulatorConfig(shift_uses_vy=False))


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. set_registers(state, V1=3, VF=1)."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)
