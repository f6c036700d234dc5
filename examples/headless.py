"""Run a ROM headless for a number of 60 Hz frames and save the final screen.

Usage: python headless.py ROM [FRAMES] [key=value ...]
"""

import sys

from vipax import Machine, MachineFault, load_config, save_frame


if __name__ == "__main__":
    rom_path = sys.argv[1]
    frames = int(sys.argv[2]) if len(sys.argv) > 2 else 600
    config = load_config(overrides=sys.argv[3:])

    machine = Machine(config)
    machine.on_sound_change.append(lambda active: print("beep on" if active else "beep off"))
    machine.load_rom(rom_path)

    try:
        for _ in range(frames):
            machine.run_frame()
    except MachineFault as fault:
        print(f"Halted: {fault}")

    save_frame(machine.display, "screen.png")
    print(f"PC=0x{int(machine.state.pc):03X} I=0x{int(machine.state.I):03X}")
    print(" ".join(f"V{i:X}={int(v):02X}" for i, v in enumerate(machine.state.V)))
