import pytest


class ScriptedRandom:
    """Random source that hands out a fixed sequence of rolls."""

    def __init__(self, values):
        self.values = list(values)

    def randint(self, a, b):
        value = self.values.pop(0)
        assert a <= value <= b, f"scripted roll {value} outside [{a}, {b}]"
        return value

    @property
    def remaining(self):
        return len(self.values)


@pytest.fixture
def scripted():
    return ScriptedRandom
