"""Confidence arithmetic shared by the pipeline stages."""


def clamp_confidence(value: float) -> float:
    """Clamp a confidence value to the range [0, 1]."""
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def apply_delta(base: float, delta: float) -> float:
    """Add a rule delta to a confidence value, then clamp."""
    return clamp_confidence(base + delta)
