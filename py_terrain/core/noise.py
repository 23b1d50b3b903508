"""Fractal noise helpers over OpenSimplex."""

from typing import Tuple

from opensimplex import OpenSimplex


def fbm(noise: OpenSimplex, x: float, y: float, octaves: int, scale: float,
        offset: Tuple[float, float] = (0.0, 0.0)) -> float:
    """
    Fractal Brownian motion at a single point.

    Each octave doubles the frequency and halves the amplitude, starting
    from amplitude 0.5, so the result stays roughly within [-1, 1].

    Args:
        noise: OpenSimplex generator
        x, y: Sample position in map units
        octaves: Number of octaves to sum
        scale: Map units per noise unit at the base octave
        offset: Shift in noise space applied to every octave

    Returns:
        Summed noise value
    """
    value = 0.0
    amplitude = 0.5
    frequency = 1.0
    for _ in range(octaves):
        nx = x / scale * frequency + offset[0]
        ny = y / scale * frequency + offset[1]
        value += noise.noise2(nx, ny) * amplitude
        frequency *= 2.0
        amplitude *= 0.5
    return value
