"""Pytest configuration and fixtures."""

import pytest

from deci import NumericContext
from tests.helpers.constants import CTX4, CTX40


@pytest.fixture
def ctx4() -> NumericContext:
    """Return the narrow context: scale 4, precision 3, HALF_UP."""
    return CTX4


@pytest.fixture
def ctx40() -> NumericContext:
    """Return the wide context: scale 40, precision 30, HALF_UP."""
    return CTX40


@pytest.fixture
def deci_env() -> dict[str, str]:
    """Return an environment mapping describing the narrow context."""
    return {
        "DECI_SCALE": "4",
        "DECI_PRECISION": "3",
        "DECI_ROUNDING": "half_up",
    }
