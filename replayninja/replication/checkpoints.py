"""
Value and screenshot comparison for checkpoint steps.

A checkpoint compares something observed in the browser (element text, an
attribute, the URL, the title, a screenshot) with what was expected when the
session was recorded. A mismatch raises `CheckpointFailed`, which fails the
step like any other step error.

## Match modes

| Mode        | Passes when                                   |
|-------------|-----------------------------------------------|
| equals      | observed == expected                          |
| contains    | expected is a substring of observed           |
| starts_with | observed starts with expected                 |
| regex       | expected matches the whole observed value     |

Comparisons ignore case unless `case_sensitive` is set. A checkpoint without an
expected value passes trivially.
"""

import io
import re
from pathlib import Path
from typing import Optional

from PIL import Image, ImageChops, UnidentifiedImageError

from replayninja.replication.errors import ActionError, CheckpointFailed
from replayninja.schemas.session import CheckpointData, MatchMode
from replayninja.utils.logging_config import logger


def value_matches(
    actual: Optional[str], expected: str, mode: MatchMode, case_sensitive: bool = False
) -> bool:
    """Compare an observed value with the expected one.

    Args:
        actual (Optional[str]): Observed value; None never matches
        expected (str): Expected value, or a pattern in `regex` mode
        mode (MatchMode): Comparison to apply
        case_sensitive (bool): Compare without case folding

    Returns:
        bool: Whether the observed value satisfies the expectation

    Raises:
        ActionError: If `expected` is not a valid regular expression in `regex` mode
    """
    if actual is None:
        return False

    if mode == MatchMode.REGEX:
        try:
            pattern = re.compile(expected, 0 if case_sensitive else re.IGNORECASE)
        except re.error as e:
            raise ActionError(
                f"Invalid checkpoint pattern {expected!r}: {e}", component="CheckpointHandler"
            ) from e
        return pattern.fullmatch(actual) is not None

    observed = actual if case_sensitive else actual.casefold()
    wanted = expected if case_sensitive else expected.casefold()
    if mode == MatchMode.CONTAINS:
        return wanted in observed
    if mode == MatchMode.STARTS_WITH:
        return observed.startswith(wanted)
    return observed == wanted


def assert_match(label: str, actual: Optional[str], checkpoint: CheckpointData) -> None:
    """Raise `CheckpointFailed` unless `actual` satisfies the checkpoint.

    Raises:
        CheckpointFailed: If the observed value does not match
        ActionError: If the checkpoint's pattern is invalid
    """
    expected = checkpoint.expected_value
    if expected is None:
        logger.warning(f"⚠️ Checkpoint {label} has no expected value, passing trivially")
        return

    if not value_matches(actual, expected, checkpoint.match_mode, checkpoint.case_sensitive):
        raise CheckpointFailed(
            label,
            f"expected [{expected}] ({checkpoint.match_mode.value}) but got [{actual}]",
            expected=expected,
            actual=actual,
        )
    logger.replay_log(f"🔎 Checkpoint {label}: {actual!r} {checkpoint.match_mode.value} {expected!r}")


def screenshot_difference_ratio(screenshot: bytes, baseline_path: Path) -> float:
    """Share of differing pixels between a screenshot and a baseline image.

    Only the overlapping area (the smaller width and height of the two images) is
    compared.

    Args:
        screenshot (bytes): Encoded image taken from the browser
        baseline_path (Path): Baseline image file

    Returns:
        float: Differing pixels divided by compared pixels, 0.0 for an empty overlap

    Raises:
        ActionError: If either image cannot be read
    """
    try:
        with Image.open(io.BytesIO(screenshot)) as actual_image, Image.open(
            baseline_path
        ) as baseline_image:
            width = min(actual_image.width, baseline_image.width)
            height = min(actual_image.height, baseline_image.height)
            if width == 0 or height == 0:
                return 0.0

            box = (0, 0, width, height)
            actual_rgb = actual_image.convert("RGB").crop(box)
            baseline_rgb = baseline_image.convert("RGB").crop(box)
            difference = ImageChops.difference(actual_rgb, baseline_rgb)
            changed = sum(1 for pixel in difference.getdata() if any(pixel))
    except (OSError, UnidentifiedImageError) as e:
        raise ActionError(
            f"Screenshot checkpoint could not read images (baseline {baseline_path}): {e}",
            component="CheckpointHandler",
        ) from e

    return changed / (width * height)
