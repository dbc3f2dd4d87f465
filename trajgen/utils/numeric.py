"""
Scalar numeric helpers shared by geometry, curves and profile generation.
"""

import math

from trajgen.config import EPSILON


def epsilon_equals(a: float, b: float, eps: float = EPSILON) -> bool:
    return abs(a - b) < eps


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def sign(value: float) -> float:
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


def solve_quadratic(a: float, b: float, c: float) -> list[float]:
    """
    Real roots of a*x^2 + b*x + c.

    A discriminant within EPSILON of zero yields a single root.
    """
    disc = b * b - 4 * a * c
    if epsilon_equals(disc, 0.0):
        return [-b / (2 * a)]
    if disc > 0.0:
        root = math.sqrt(disc)
        return [(-b + root) / (2 * a), (-b - root) / (2 * a)]
    return []


def smallest_nonnegative(roots: list[float]) -> float:
    candidates = [r for r in roots if r >= 0.0]
    if not candidates:
        raise ValueError(f"No non-negative root in {roots}")
    return min(candidates)
