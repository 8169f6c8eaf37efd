"""Linear price interpolation — pure functions, no I/O."""

from decimal import Decimal

from tokenoracle.domain.models.price import PriceSample


class InterpolationRangeError(ValueError):
    """Target lies outside the [before, after] bracket."""


def interpolate(target: int, before: PriceSample, after: PriceSample) -> Decimal:
    """Price at ``target`` on the straight line between two bracket samples.

    Args:
        target: Unix timestamp, must satisfy before.timestamp <= target <= after.timestamp.
        before: Sample at or before the target.
        after: Sample at or after the target.

    Returns:
        Interpolated price. A zero-width bracket returns ``before.price``.

    Raises:
        InterpolationRangeError: target outside the bracket (no extrapolation).
    """
    if before.timestamp == after.timestamp:
        return before.price

    if not before.timestamp <= target <= after.timestamp:
        raise InterpolationRangeError(
            f"Target {target} outside bracket [{before.timestamp}, {after.timestamp}]"
        )

    ratio = Decimal(target - before.timestamp) / Decimal(after.timestamp - before.timestamp)
    return before.price + (after.price - before.price) * ratio
