from logging import getLogger
from typing import Optional, Sequence, Type

import numpy as np

from tsprim.impl.buffers import as_float_array
from tsprim.impl.config import get_config
from tsprim.impl.error_handling import InvalidArgument
from tsprim.impl.validation import PowArgs, check_args

__all__ = [
    "is_convertible",
    "pow_n",
    "tic_diff1",
    "tic_diff2",
]

log = getLogger(__name__)


def is_convertible(src: Type, dst: Type) -> bool:
    """True if a value of numeric type `src` can be converted to numeric type `dst`"""
    try:
        dst(src(1))
    except (TypeError, ValueError, OverflowError):
        return False
    return True


def _irregular_grid(t, x, chk_inp: Optional[bool], func_name: str):
    if chk_inp is None:
        chk_inp = get_config().check_inputs

    if chk_inp:
        t_raw = np.asarray(t)
        n = len(x)
        if n != len(t_raw):
            raise InvalidArgument(f"{func_name}: the length of the time and data series must match")
        if n < 3:
            raise InvalidArgument(f"{func_name}: at least 3 points are needed, got {n}")
        if not is_convertible(t_raw.dtype.type, np.float64):
            raise InvalidArgument(f"{func_name}: times of type {t_raw.dtype} cannot be converted to float64")

    tc = as_float_array(t, "t")
    xc = as_float_array(x, "x")

    if chk_inp and not np.all(np.diff(tc) > 0.0):
        raise InvalidArgument(f"{func_name}: the time series must be strictly increasing")

    log.debug(f"{func_name}: N={len(xc)}, checked={chk_inp}")
    h1 = tc[1:-1] - tc[:-2]
    h2 = tc[2:] - tc[1:-1]
    return xc, h1, h2


def tic_diff1(t: Sequence[float], x: Sequence[float], chk_inp: Optional[bool] = None) -> np.ndarray:
    """

    Returns the numerical derivative of `x` with respect to possibly irregular times `t`
    at the interior points t[1] .. t[N-2].

    Inputs
    t:          strictly increasing times
    x:          values, of the same length as `t`
    chk_inp:    check the input contract (lengths match, times convertible to float and strictly increasing).
                If None, uses the check_inputs setting of the config

    """
    xc, h1, h2 = _irregular_grid(t, x, chk_inp, "tic_diff1")
    return (xc[2:] - xc[:-2]) / (h1 + h2)


def tic_diff2(t: Sequence[float], x: Sequence[float], chk_inp: Optional[bool] = None) -> np.ndarray:
    """

    Returns the numerical second derivative of `x` with respect to possibly irregular times `t`
    at the interior points t[1] .. t[N-2]. Same inputs as tic_diff1.

    """
    xc, h1, h2 = _irregular_grid(t, x, chk_inp, "tic_diff2")
    return 2.0 * (h1 * xc[2:] - (h1 + h2) * xc[1:-1] + h2 * xc[:-2]) / (h1 * h2 * (h1 + h2))


def pow_n(x, n: int, m=None):
    """

    Fast non-negative integer powers by repeated squaring over the binary digits of `n`.

    Inputs
    x:  the base, any number
    n:  the power, must be >= 0
    m:  an optional modulus. If given, returns x^n mod m with every intermediate product reduced mod m,
        in the type that x and m promote to

    """
    n = check_args(PowArgs, "pow_n", n=n).n

    if m is None:
        one = type(x)(1)
    else:
        one = type(x + m)(1)
        x = x % m

    # Anything to the 0'th power is 1
    if n == 0:
        return one

    result = one
    while True:
        if n & 1:
            result = result * x if m is None else (result * x) % m
        n >>= 1
        if not n:
            return result
        x = x * x if m is None else (x * x) % m
