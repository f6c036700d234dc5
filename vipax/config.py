"""Emulator configuration backed by OmegaConf structured configs."""

from dataclasses import dataclass
from typing import Optional, Sequence

from omegaconf import OmegaConf


@dataclass
class EmulatorConfig:
    """Machine options.

    Attributes:
        seed: PRNG seed used by CXNN
        shift_uses_vy: 8XY6/8XYE shift VY into VX (COSMAC VIP). When False,
            VX is shifted in place.
        jump_uses_vx: BXNN jumps to XNN + VX instead of NNN + V0
        instruction_frequency: Target CPU speed in Hz
        timer_frequency: Timer tick rate in Hz
    """
    seed: int = 0
    shift_uses_vy: bool = True
    jump_uses_vx: bool = False
    instruction_frequency: int = 700
    timer_frequency: int = 60

    @property
    def instructions_per_frame(self) -> int:
        """Number of instructions executed between two timer ticks."""
        return max(1, self.instruction_frequency // self.timer_frequency)


def load_config(path: Optional[str] = None, overrides: Optional[Sequence[str]] = None) -> EmulatorConfig:
    """Build a config from defaults, an optional YAML file and dotlist overrides.

    Args:
        path: YAML file with any subset of the EmulatorConfig fields
        overrides: Dotlist entries such as ["shift_uses_vy=false", "seed=3"]

    Returns:
        Validated EmulatorConfig
    """
    cfg = OmegaConf.structured(EmulatorConfig)
    if path is not None:
        cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
    return OmegaConf.to_object(cfg)
