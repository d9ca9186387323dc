#!/usr/bin/env python3
"""
Basic usage example for scatrace.

Demonstrates:
- Creating traces with named parameters
- Inspecting the preferred sample coding
- Saving a trace set to HDF5 in its uniform coding
- Loading it back lazily for analysis
"""

import os
import numpy as np
from scatrace import (
    Trace, TraceSet, ByteArrayParameter, StringParameter, ShortArrayParameter,
)


def basic_data_collection(filename):
    """Collect simulated 8-bit oscilloscope traces with their inputs."""
    trace_set = TraceSet("aes_power", metadata={
        "device": "STM32F4",
        "algorithm": "AES-128",
    })

    rng = np.random.default_rng(0)
    for i in range(100):
        # Simulated 8-bit ADC readings
        samples = rng.integers(-128, 128, 1000)
        plaintext = rng.integers(0, 256, 16, dtype=np.uint8).tobytes()

        trace = Trace.create(
            samples,
            title=f"trace_{i:04d}",
            parameters={
                "input": ByteArrayParameter(plaintext),
                "cipher": StringParameter("AES"),
                "round": ShortArrayParameter([10]),
            },
            sample_frequency=1e9,
        )
        trace_set.add_trace(trace)

    print(f"First trace coding: {trace_set[0].preferred_coding.name}")
    print(f"First trace data: {trace_set[0].data_string}")
    print(f"Set coding: {trace_set.preferred_coding.name}")

    trace_set.save_hdf5(filename, overwrite_ok=True)
    print(f"Saved {len(trace_set)} traces to {filename}")


def basic_data_analysis(filename):
    """Load the set lazily and compute a mean trace."""
    trace_set = TraceSet.load_hdf5(filename, "aes_power")
    print(f"Loaded {len(trace_set)} traces stored as {trace_set.preferred_coding.name}")

    matrix = trace_set.to_matrix(dtype=np.float32)
    print(f"Mean trace peak: {matrix.mean(axis=0).max():.3f}")

    first = trace_set[0]
    print(f"{first.title}: {first.number_of_samples} samples at {first.sample_frequency:.0f} Hz")
    trace_set.close_reading()


if __name__ == "__main__":
    filename = "aes_power.h5"
    basic_data_collection(filename)
    basic_data_analysis(filename)
    if os.path.exists(filename):
        os.remove(filename)
