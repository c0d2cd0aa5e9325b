from .models import (
    AIR,
    Action,
    Assertion,
    BlockIs,
    Fill,
    Place,
    PlaceEach,
    Position,
    Region,
    Remove,
    StateIs,
    TestCase,
)
from .loader import LoadResult, discover, load_test, load_tests, parse_test
from .offset import apply_offsets, compute_offsets

__all__ = [
    "AIR", "Action", "Assertion", "BlockIs", "Fill", "Place", "PlaceEach",
    "Position", "Region", "Remove", "StateIs", "TestCase",
    "LoadResult", "discover", "load_test", "load_tests", "parse_test",
    "apply_offsets", "compute_offsets",
]
