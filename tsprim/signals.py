from logging import getLogger
from typing import Optional, Sequence, Tuple

import numpy as np

from tsprim.impl.buffers import as_float_array
from tsprim.impl.config import get_config
from tsprim.impl.error_handling import InvalidArgument
from tsprim.impl.validation import CusumArgs, check_args

__all__ = ["sig_cumsum"]

log = getLogger(__name__)


def sig_cumsum(
    t: Sequence, x: Sequence[float], w: int, h: float, chk_inp: Optional[bool] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """

    CUSUM detector: returns the tics and sizes of all deviations of `x` from its running mean that reach `h`.

    The running mean starts at x[0] and is updated as ((w - 1) * mean + x[i-1]) / w. Deviations accumulate as
        S+_i = max(0, S+_{i-1} + x_i - mean),  S+_0 = 0
        S-_i = min(0, S-_{i-1} + x_i - mean),  S-_0 = 0
        S_i  = max(S+_i, -S-_i)
    and every (t_i, S_i) with S_i >= h is reported.

    Inputs
    t:          the tics of the series, strictly increasing. Returned tics keep the dtype of `t`
    x:          the series to examine
    w:          the width of the running mean, must be > 1
    h:          the deviation threshold, must be > 0
    chk_inp:    check the series contract (length >= 2, lengths match, tics strictly increasing).
                If None, uses the check_inputs setting of the config

    Returns (tics, signals), two arrays of equal length.

    """
    args = check_args(CusumArgs, "sig_cumsum", w=w, h=h)
    w, h = args.w, args.h
    t = np.asarray(t)
    x = as_float_array(x)
    n = len(x)

    if chk_inp is None:
        chk_inp = get_config().check_inputs
    if chk_inp:
        if n < 2:
            raise InvalidArgument(f"sig_cumsum: the length of `x` must be >= 2, got {n}")
        if n != len(t):
            raise InvalidArgument(f"sig_cumsum: the length of the tics ({len(t)}) must match the data ({n})")
        dt = np.diff(t)
        if not np.all(dt > dt.dtype.type(0)):
            raise InvalidArgument("sig_cumsum: the tics must be strictly increasing")

    tics = []
    sigs = []
    if n:
        values = x.tolist()
        xm = values[0]
        sp = 0.0
        sn = 0.0
        for i in range(1, n):
            xm = ((w - 1) * xm + values[i - 1]) / w
            sp = max(0.0, sp + values[i] - xm)
            sn = min(0.0, sn + values[i] - xm)
            delta = max(sp, -sn)
            if delta >= h:
                tics.append(t[i])
                sigs.append(delta)

    log.debug(f"sig_cumsum: N={n}, window={w}, threshold={h}, signals={len(sigs)}")
    return np.array(tics, dtype=t.dtype), np.array(sigs, dtype=np.float64)
