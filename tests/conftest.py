import random
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from primitives import INTEGER_KINDS  # noqa: E402


def int_bounds(kind):
    """Return ``(min, max)`` of an integer primitive descriptor."""
    signed = kind.name.startswith("int")
    if signed:
        return -(1 << (kind.width - 1)), (1 << (kind.width - 1)) - 1
    return 0, (1 << kind.width) - 1


@pytest.fixture()
def rng():
    """Seeded random generator so failures are reproducible."""
    return random.Random(0xB2)


@pytest.fixture(params=INTEGER_KINDS, ids=lambda k: k.name)
def integer_kind(request):
    """Every fixed-width integer descriptor."""
    return request.param


@pytest.fixture()
def int_bounds_fn():
    """Fixture that provides the int_bounds helper without importing conftest."""
    return int_bounds


@pytest.fixture()
def random_ints(rng, integer_kind):
    """``integer_kind`` with its extremes, zero and 32 random values."""
    low, high = int_bounds(integer_kind)
    values = [low, high, 0, low + 1, high - 1]
    values += [rng.randint(low, high) for _ in range(32)]
    return integer_kind, values
