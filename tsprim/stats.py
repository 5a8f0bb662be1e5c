import math
import numbers
from logging import getLogger
from typing import NamedTuple, Optional, Sequence, Tuple

import numpy as np
from numba import jit
from numpy.lib.stride_tricks import sliding_window_view

from tsprim.impl.buffers import PaddedSeries, as_float_array
from tsprim.impl.error_handling import InvalidArgument
from tsprim.impl.validation import EmaArgs, EntropyArgs, EwtArgs, WindowArgs, check_args, check_length

__all__ = [
    "BiasConstants",
    "STATS_COLUMNS",
    "bias_constants",
    "ema",
    "ema_stats",
    "ema_std",
    "entropy_index",
    "ewt_mean",
    "moving_average",
    "moving_stats",
    "moving_std",
    "sample_std",
    "std",
    "weight_vector",
    "ww_sum",
]

log = getLogger(__name__)

# Column layout of the ema_stats matrix
STATS_COLUMNS = ("mean", "std", "rel_skew", "rel_kurtosis")

_LN2 = math.log(2.0)


"""
Decay weights and bias correction
"""


class BiasConstants(NamedTuple):
    """Power sums of a normalized weight vector, used to unbias the moving moment estimates"""

    W2: float
    W3: float
    W4: float
    W5: float
    WW: float

    @property
    def variance_divisor(self) -> float:
        return 1.0 - self.W2

    @property
    def skew_divisor(self) -> float:
        return 1.0 - 3.0 * self.W2 + 2.0 * self.W3

    @property
    def C1(self) -> float:
        W2, W3, W4, W5, WW = self
        return 6.0 * W2 * W5 - 6.0 * W2 + 12.0 * W2**2 - 12.0 * W2 * W4 + W2 * W3 - W5 - 6.0 * WW

    @property
    def C2(self) -> float:
        return 1.0 - 3.0 * self.W2 + 6.0 * self.W3 - 3.0 * self.W4


def _default_halflife(m, h):
    if h is None and isinstance(m, numbers.Integral):
        return m // 2
    return h


def _decay_weights(m: int, h: int) -> Tuple[float, np.ndarray]:
    l = math.exp(-_LN2 / h)
    w = np.empty(m, dtype=np.float64)
    w[0] = l
    for i in range(1, m):
        w[i] = l * w[i - 1]
    w /= w.sum()
    return l, w


def weight_vector(m: int, h: int) -> np.ndarray:
    """

    Returns the normalized geometric decay weights used by the moving statistics, largest first.

    Inputs
    m:      the window length, must be > 1
    h:      the half-life of the decay, must be > 1. The decay factor is exp(-ln(2)/h)

    """
    args = check_args(WindowArgs, "weight_vector", m=m, h=h)
    return _decay_weights(args.window, args.halflife)[1]


def ww_sum(w: Sequence[float]) -> float:
    """Returns sum_{i<j} w_i^2 * w_j^2, accumulated with a running suffix sum of squares"""
    sq = np.square(as_float_array(w, "w")).tolist()
    total = 0.0
    suffix = 0.0
    for wi2 in reversed(sq):
        total += wi2 * suffix
        suffix += wi2
    return total


def bias_constants(w: Sequence[float]) -> BiasConstants:
    """Computes the unbiasing constants W2..W5 and WW of a normalized weight vector"""
    w = as_float_array(w, "w")
    w2 = w * w
    return BiasConstants(
        W2=float(w2.sum()),
        W3=float((w2 * w).sum()),
        W4=float((w2 * w2).sum()),
        W5=float((w2 * w2 * w).sum()),
        WW=ww_sum(w),
    )


"""
EMA Statistics
"""


@jit(nopython=True, nogil=True)
def _decay_kernel(out, padded, m, l, w_first, w_last):  # pragma: no cover
    # out[0] is the seed; padded is offset by m rows. All columns advance one row at a time.
    for i in range(1, out.shape[0]):
        for j in range(out.shape[1]):
            out[i, j] = l * (out[i - 1, j] - w_last * padded[i, j]) + w_first * padded[i + m, j]


def _decay_recursion(out: np.ndarray, padded: np.ndarray, m: int, l: float, w_first: float, w_last: float):
    if out.ndim == 1:
        out, padded = out[:, None], padded[:, None]
    _decay_kernel(out, padded, m, float(l), float(w_first), float(w_last))


def _ema(x: np.ndarray, m: int, l: float, w: np.ndarray) -> np.ndarray:
    xadj = PaddedSeries(x, m, x[0])
    ma = np.empty_like(x)
    ma[0] = xadj[m]
    _decay_recursion(ma, xadj.data, m, l, w[0], w[-1])
    return ma


def std(x: Sequence[float]) -> float:
    """

    Returns the sample standard deviation (divisor N - 1) of a series.
    The length of `x` must be > 1; this is not checked.

    """
    x = as_float_array(x)
    n = len(x)
    mn = x.sum() / n
    dev = x - mn
    return math.sqrt(float(np.dot(dev, dev)) / (n - 1))


def _initial_variance(x: np.ndarray, m: int, init_sig: Optional[float]) -> float:
    sig = std(x[: min(m, len(x))]) if init_sig is None else init_sig
    return sig * sig


def ema(x: Sequence[float], m: int, h: int = None) -> np.ndarray:
    """

    Returns the exponential moving average of a series, one value per input index.

    The average is a finite window (length `m`) sum of the normalized decay weights; it is computed
    with a sliding difference recursion over the series padded with `m` copies of its first value.

    Inputs
    x:      the series, any sequence of real numbers
    m:      the window length, must be > 1
    h:      the half-life of the decay, must be > 1. Defaults to m // 2

    """
    args = check_args(WindowArgs, "ema", m=m, h=_default_halflife(m, h))
    x = as_float_array(x)
    check_length(x, 0, "ema")

    log.debug(f"ema: N={len(x)}, window={args.window}, halflife={args.halflife}")
    l, w = _decay_weights(args.window, args.halflife)
    return _ema(x, args.window, l, w)


def ema_std(x: Sequence[float], m: int, h: int = None, init_sig: Optional[float] = None) -> np.ndarray:
    """

    Returns the unbiased exponential moving standard deviation of a series, one value per input index.

    Inputs
    x:          the series, of length > 1
    m:          the window length, must be > 1
    h:          the half-life of the decay, must be > 1. Defaults to m // 2
    init_sig:   the standard deviation to start the recursion with. If None, the sample standard deviation
                of the first window (the first min(m, N) values) is used. Must be >= 0

    """
    args = check_args(EmaArgs, "ema_std", m=m, h=_default_halflife(m, h), init_sig=init_sig)
    x = as_float_array(x)
    n = check_length(x, 1, "ema_std")
    m, h = args.window, args.halflife

    log.debug(f"ema_std: N={n}, window={m}, halflife={h}, init_sig={args.init_sig}")
    l, w = _decay_weights(m, h)
    ma = _ema(x, m, l, w)

    # The deviation at index 0 is 0 by construction, so zeros are the natural history
    dev = x - ma
    xadj = PaddedSeries(dev * dev, m, 0.0)

    mvar = np.empty(n, dtype=np.float64)
    mvar[0] = _initial_variance(x, m, args.init_sig)
    _decay_recursion(mvar, xadj.data, m, l, w[0], w[-1])

    bc = bias_constants(w)
    return np.sqrt(np.maximum(mvar, 0.0) / bc.variance_divisor)


def ema_stats(x: Sequence[float], m: int, h: int = None, init_sig: Optional[float] = None) -> np.ndarray:
    """

    Returns the exponential moving mean, standard deviation, relative skew and relative kurtosis of a series
    as an (N, 4) matrix with columns in the order of STATS_COLUMNS.

    The four recursions share the weights of `ema`. Columns 0 and 1 match `ema` and `ema_std` for the same
    arguments. The variance is unbiased by (1 - W2), the skew is divided by std^1.5 * (1 - 3W2 + 2W3) and the
    kurtosis is corrected as (m4 / std^2 + C1) / C2 (see BiasConstants).

    Inputs
    x:          the series, of length > 3
    m:          the window length, must be > 1
    h:          the half-life of the decay, must be > 1. Defaults to m // 2
    init_sig:   the standard deviation to start the recursion with. If None, the sample standard deviation
                of the first window is used. Must be a real number >= 0

    """
    args = check_args(EmaArgs, "ema_stats", m=m, h=_default_halflife(m, h), init_sig=init_sig)
    x = as_float_array(x)
    n = check_length(x, 3, "ema_stats")
    m, h = args.window, args.halflife

    log.debug(f"ema_stats: N={n}, window={m}, halflife={h}, init_sig={args.init_sig}")
    l, w = _decay_weights(m, h)
    ma = _ema(x, m, l, w)

    dev = x - ma
    v = dev * dev
    xadj = PaddedSeries(np.column_stack((x, v, v * dev, v * v)), m, (x[0], 0.0, 0.0, 0.0))

    mstat = np.empty((n, 4), dtype=np.float64)
    mstat[0] = (x[0], _initial_variance(x, m, args.init_sig), 0.0, 0.0)
    _decay_recursion(mstat, xadj.data, m, l, w[0], w[-1])

    bc = bias_constants(w)
    with np.errstate(divide="ignore", invalid="ignore"):
        sd = np.sqrt(np.maximum(mstat[:, 1], 0.0) / bc.variance_divisor)
        mstat[:, 1] = sd
        mstat[:, 2] /= sd**1.5 * bc.skew_divisor
        mstat[:, 3] = (mstat[:, 3] / sd**2 + bc.C1) / bc.C2
    return mstat


def moving_average(x: Sequence[float], m: int, h: int = None) -> np.ndarray:
    return ema(x, m, h)


def moving_std(x: Sequence[float], m: int, h: int = None, init_sigma: Optional[float] = None) -> np.ndarray:
    return ema_std(x, m, h, init_sig=init_sigma)


def moving_stats(x: Sequence[float], m: int, h: int = None, init_sigma: Optional[float] = None) -> np.ndarray:
    return ema_stats(x, m, h, init_sig=init_sigma)


def sample_std(x: Sequence[float]) -> float:
    return std(x)


"""
Entropy and temporal weighting
"""


def entropy_index(
    x: Sequence[float],
    n: int = 10,
    tol: Optional[float] = None,
    probs: Sequence[float] = (0.01, 0.99),
    lam: float = 1.0,
) -> float:
    """

    Returns the (discounted) binned entropy index of a series: the entropy of its binned distribution
    divided by the entropy of the uniform distribution over `n` bins.

    Values are capped at the `probs` quantiles and placed into `n` equal width bins. With `lam` < 1 each
    observation counts lam^k, where k is how many observations ago it occurred (the newest counts 1).

    Inputs
    x:      the series
    n:      the number of bins, must be > 2
    tol:    tolerance used to treat a bin probability as 0 and to nudge values off bin edges.
            Defaults to 1 / (100 n); must be in (0, 0.01)
    probs:  the lower and upper quantiles used to cap the data
    lam:    the discount factor, in (0, 1]

    """
    args = check_args(EntropyArgs, "entropy_index", n=n, tol=tol, probs=probs, lam=lam)
    x = as_float_array(x)
    count = check_length(x, 0, "entropy_index")
    n, tol, lam = args.n, args.tol, args.lam

    qmin, qmax = np.quantile(x, args.probs)
    width = (qmax - qmin) / n
    if not width > 0.0:
        log.warning(f"entropy_index: empty quantile range [{qmin}, {qmax}], all data falls in a single bin")
        return 0.0

    idxs = np.trunc((x - qmin - tol) / width).astype(np.intp)
    np.clip(idxs, 0, n - 1, out=idxs)

    discounts = lam ** np.arange(count - 1, -1, -1, dtype=np.float64)
    bdist = np.bincount(idxs, weights=discounts, minlength=n)
    bdist /= bdist.sum()

    nonzero = bdist[~np.isclose(bdist, 0.0, rtol=0.0, atol=tol)]
    ent = -float(np.sum(nonzero * np.log(nonzero)))
    return ent / math.log(n)


def ewt_mean(ts: Sequence[float], xs: Sequence[float], b: int, lm: float) -> np.ndarray:
    """

    Returns the moving temporally weighted, exponentially decayed mean of `xs` over windows of length `b`.

    Each value xs[i] is weighted by how long it stood, ts[i+1] - ts[i], and by a decay factor that is 1 for
    the newest value in the window and lm^k for the value k steps older. Weights are normalized per window.
    Set lm to 1.0 for temporal weighting without decay.

    Inputs
    ts:     time stamps, oldest first
    xs:     values associated with the time stamps
    b:      the window length, 0 < b < len(xs)
    lm:     the decay factor, in (0, 1]

    Returns an array of length len(xs) - b; entry i covers xs[i : i + b].

    """
    args = check_args(EwtArgs, "ewt_mean", b=b, lm=lm)
    ts = as_float_array(ts, "ts")
    xs = as_float_array(xs, "xs")
    n = len(ts)
    b, lm = args.b, args.lm
    if n != len(xs):
        raise InvalidArgument(f"The length of the time and data series must match, got {n} and {len(xs)}")
    if not b < n:
        raise InvalidArgument(f"The window length b={b} must be less than the length of the series ({n})")

    decay = lm ** np.arange(b - 1, -1, -1, dtype=np.float64)
    ws = sliding_window_view(np.diff(ts), b) * decay
    windows = sliding_window_view(xs, b)[: n - b]
    return (ws * windows).sum(axis=1) / ws.sum(axis=1)
