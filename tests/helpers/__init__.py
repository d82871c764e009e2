"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Shared numeric contexts
- factories: Value factory functions
"""

from tests.helpers.constants import CTX1_DOWN, CTX4, CTX40
from tests.helpers.factories import scaled

__all__ = [
    # Constants
    "CTX4",
    "CTX40",
    "CTX1_DOWN",
    # Factories
    "scaled",
]
