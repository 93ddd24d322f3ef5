"""Fractal coherent noise built on OpenSimplex."""

from opensimplex import OpenSimplex


class FractalNoise:
    """
    Fractal Brownian motion over 2-D OpenSimplex noise.

    Octaves double in frequency and halve in amplitude; the sum is divided by
    the total amplitude so values stay within [-1, 1].
    """

    def __init__(self, seed: int, octaves: int, frequency: float,
                 lacunarity: float = 2.0, gain: float = 0.5):
        self.seed = seed & 0xFFFFFFFF
        self.octaves = octaves
        self.frequency = frequency
        self.lacunarity = lacunarity
        self.gain = gain
        self._generator = OpenSimplex(seed=self.seed)

        amplitude = 1.0
        bounding = 0.0
        for _ in range(octaves):
            bounding += amplitude
            amplitude *= gain
        self._bounding = bounding

    def noise(self, x: float, y: float) -> float:
        total = 0.0
        amplitude = 1.0
        frequency = self.frequency
        for _ in range(self.octaves):
            total += amplitude * self._generator.noise2(x * frequency, y * frequency)
            amplitude *= self.gain
            frequency *= self.lacunarity
        return float(total / self._bounding)
