"""Math helpers: entropy, circular statistics, clamping. No engine imports."""

from __future__ import annotations

import math

import numpy as np


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def normalized_entropy(weights: list[float]) -> float:
    """Shannon entropy of a distribution, divided by log2(len).

    1.0 = perfectly even, 0.0 = all mass in one bucket.
    """
    if len(weights) < 2:
        return 0.0
    total = float(sum(weights))
    if total <= 0:
        return 0.0
    probs = np.asarray(weights, dtype=np.float64) / total
    probs = probs[probs > 0]
    entropy = float(-np.sum(probs * np.log2(probs)))
    return entropy / math.log2(len(weights))


def circular_mean(angles_deg: list[float]) -> float:
    """Mean direction of a set of headings, in [0, 360)."""
    if not angles_deg:
        return 0.0
    rad = np.radians(angles_deg)
    mean = math.degrees(math.atan2(float(np.mean(np.sin(rad))), float(np.mean(np.cos(rad)))))
    return mean % 360.0


def circular_std(angles_deg: list[float]) -> float:
    """Circular standard deviation in degrees (0 for identical headings)."""
    if len(angles_deg) < 2:
        return 0.0
    rad = np.radians(angles_deg)
    r = math.hypot(float(np.mean(np.sin(rad))), float(np.mean(np.cos(rad))))
    if r >= 1.0:
        return 0.0
    if r <= 1e-12:
        return 180.0
    return math.degrees(math.sqrt(-2.0 * math.log(r)))


def coefficient_of_variation(values: list[float]) -> float:
    """CV = std / mean. Infinite for a zero mean."""
    arr = np.asarray(values, dtype=np.float64)
    mean = float(np.mean(arr))
    if abs(mean) < 1e-10:
        return float("inf")
    return float(np.std(arr) / mean)


def mean_abs_deviation(values: list[float]) -> float:
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    return float(np.mean(np.abs(arr - arr.mean())))


def is_monotonic(values: list[float]) -> bool:
    """True when values strictly increase or strictly decrease."""
    diffs = np.diff(np.asarray(values, dtype=np.float64))
    return bool(diffs.size > 0 and (np.all(diffs > 0) or np.all(diffs < 0)))
