import logging
from volscaler.utils.quantity import format_quantity

logger = logging.getLogger(__name__)


def grow(current_size: int, increase_percent: float, min_increase: int, max_size: int) -> int:
    """Compute the next requested size of a volume, in bytes.

    The increase is ``increase_percent`` of the current size, raised to at
    least ``min_increase`` and never below one byte; the result never exceeds
    ``max_size``. A volume already at or above ``max_size`` gets ``max_size`` back.

    Raises:
        ValueError: increase_percent is not positive, or a size is negative.
    """
    if increase_percent <= 0:
        raise ValueError(f"increase percent must be positive, got {increase_percent}")
    if min_increase < 0:
        raise ValueError(f"minimum increase must not be negative, got {min_increase}")
    if current_size < 0 or max_size < 0:
        raise ValueError(
            f"sizes must not be negative, got current={current_size} max={max_size}"
        )

    increase = int(current_size * increase_percent // 100)
    # at least one byte, so a volume below max_size always grows
    increase = max(increase, min_increase, 1)
    new_size = min(current_size + increase, max_size)
    logger.debug(
        "Calculated resize from %s to %s", format_quantity(current_size), format_quantity(new_size)
    )
    return new_size
