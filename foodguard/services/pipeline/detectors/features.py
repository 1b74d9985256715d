"""Colour and texture statistics shared by the heuristic detectors.

All functions take float32 RGB pixels in [0, 1] and return new arrays;
nothing here writes to its input.
"""

import numpy as np


def rgb_to_hsv(pixels: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized RGB -> HSV. Hue in [0, 1), saturation and value in [0, 1]."""
    r, g, b = pixels[..., 0], pixels[..., 1], pixels[..., 2]
    maxc = pixels.max(axis=-1)
    minc = pixels.min(axis=-1)
    delta = maxc - minc

    sat = np.divide(delta, maxc, out=np.zeros_like(maxc), where=maxc > 0)

    safe = np.where(delta > 0, delta, 1.0)
    rc = (maxc - r) / safe
    gc = (maxc - g) / safe
    bc = (maxc - b) / safe
    hue = np.where(
        maxc == r,
        bc - gc,
        np.where(maxc == g, 2.0 + rc - bc, 4.0 + gc - rc),
    )
    hue = np.where(delta > 0, (hue / 6.0) % 1.0, 0.0)
    return hue.astype(np.float32), sat.astype(np.float32), maxc.astype(np.float32)


def gradient_energy(channel: np.ndarray) -> float:
    """Mean absolute neighbour difference; 0 for flat images."""
    dx = np.abs(np.diff(channel, axis=1)).mean() if channel.shape[1] > 1 else 0.0
    dy = np.abs(np.diff(channel, axis=0)).mean() if channel.shape[0] > 1 else 0.0
    return float((dx + dy) / 2.0)


def box_blur(channel: np.ndarray) -> np.ndarray:
    """3x3 mean filter with edge padding."""
    padded = np.pad(channel, 1, mode="edge")
    h, w = channel.shape
    acc = np.zeros_like(channel, dtype=np.float32)
    for dy in range(3):
        for dx in range(3):
            acc += padded[dy:dy + h, dx:dx + w]
    return acc / 9.0


def local_contrast(channel: np.ndarray) -> np.ndarray:
    """Positive deviation from the 3x3 neighbourhood mean (bright specks)."""
    return np.clip(channel - box_blur(channel), 0.0, None)


def ratio(mask: np.ndarray) -> float:
    return float(mask.mean()) if mask.size else 0.0


def hue_between(hue: np.ndarray, lo: float, hi: float) -> np.ndarray:
    return (hue >= lo) & (hue < hi)


def margin_confidence(value: float, edges: list[float], floor: float = 0.55) -> float:
    """Confidence from distance to the nearest class boundary.

    A value sitting on a threshold gets ``floor``; one 0.25 or more away
    from every threshold gets 0.95.
    """
    if not edges:
        return 0.95
    distance = min(abs(value - e) for e in edges)
    return floor + (0.95 - floor) * min(distance / 0.25, 1.0)
