import numpy as np

from tsprim.impl.error_handling import InvalidArgument

__all__ = ["PaddedSeries", "as_float_array"]


def as_float_array(x, name: str = "x") -> np.ndarray:
    """
    Explicit conversion boundary for input series: returns a fresh 1-D float64 copy of `x`.
    Accepts lists, tuples, numpy arrays (any real dtype) and pandas Series.
    """
    try:
        arr = np.array(x, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"`{name}` must be a sequence of real numbers: {e}") from None
    if arr.ndim != 1:
        raise InvalidArgument(f"`{name}` must be one dimensional, got shape {arr.shape}")
    return arr


class PaddedSeries:
    """
    A preallocated buffer holding `pad` rows of `fill` followed by `values`.

    Row `offset + i` of `data` holds `values[i]`, so a recursion can look back `pad` rows from
    any position without special casing the start of the series. Multi-column values are padded
    per column, `fill` broadcasting across the trailing dimensions.
    """

    __slots__ = ("_buffer", "offset")

    def __init__(self, values: np.ndarray, pad: int, fill=0.0):
        self.offset = pad
        self._buffer = np.empty((pad + values.shape[0],) + values.shape[1:], dtype=np.float64)
        self._buffer[:pad] = fill
        self._buffer[pad:] = values

    @property
    def data(self) -> np.ndarray:
        return self._buffer

    @property
    def values(self) -> np.ndarray:
        return self._buffer[self.offset :]

    def __len__(self):
        return self._buffer.shape[0]

    def __getitem__(self, item):
        return self._buffer[item]
