"""Time divisions used for rhythm quantization."""

from enum import IntEnum

_DENOMINATORS = (1, 2, 3, 4, 6, 8, 12, 16, 24, 32, 48, 64)

TIME_DIVISION_LABELS = tuple(f"1/{d}" for d in _DENOMINATORS)


class TimeDivision(IntEnum):
    """A fraction of a whole note used as a quantization grid."""

    DIV_1_1 = 0
    DIV_1_2 = 1
    DIV_1_3 = 2
    DIV_1_4 = 3
    DIV_1_6 = 4
    DIV_1_8 = 5
    DIV_1_12 = 6
    DIV_1_16 = 7
    DIV_1_24 = 8
    DIV_1_32 = 9
    DIV_1_48 = 10
    DIV_1_64 = 11

    def label(self) -> str:
        """Display text such as ``1/8``."""
        return TIME_DIVISION_LABELS[self.value]

    def fraction(self) -> float:
        """Length of the division as a fraction of a whole note."""
        return 1.0 / _DENOMINATORS[self.value]