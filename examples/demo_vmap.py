"""Run many machines side by side with jax.vmap and time the compiled batch."""

import sys
import time
import timeit

import jax
import numpy as np

from vipax import create_state, load_rom, run_n_instruction, save_frame


def time_it_measure(bench, repeat=10, number=3) -> np.ndarray:
    times = timeit.repeat(bench, repeat=repeat, number=number)
    return np.array(times) / number


if __name__ == "__main__":
    rom_path = sys.argv[1]
    num_machines = int(sys.argv[2]) if len(sys.argv) > 2 else 1000
    num_instructions = 10_000

    def make_machine(rng):
        state = create_state(rng)
        return state.replace(memory=template.memory)

    template = load_rom(create_state(), rom_path)
    rngs = jax.random.split(jax.random.PRNGKey(0), num_machines)
    states = jax.vmap(make_machine)(rngs)

    batched_run = jax.jit(jax.vmap(lambda state: run_n_instruction(state, num_instructions)))

    start_compile = time.perf_counter()
    compiled = batched_run.lower(states).compile()
    print("Compilation time (s):", time.perf_counter() - start_compile)

    def bench():
        jax.block_until_ready(compiled(states))

    times = time_it_measure(bench)
    print("Mean time (s):", times.mean())
    print("Q1 (s):", np.quantile(times, 0.25))
    print("Q3 (s):", np.quantile(times, 0.75))
    print(f"Instructions per second: {num_machines * num_instructions / times.mean():,.0f}")

    final = compiled(states)
    print("Faulted machines:", int((final.fault != 0).sum()))
    for i in range(min(4, num_machines)):
        save_frame(final.display[i], f"machine{i}.png")
