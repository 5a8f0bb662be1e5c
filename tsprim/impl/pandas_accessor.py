from typing import Optional

import pandas as pd
from pandas.api.extensions import register_series_accessor

from tsprim.stats import STATS_COLUMNS, ema, ema_stats, ema_std, entropy_index


@register_series_accessor("tsprim")
class TsprimSeriesAccessor:
    """
    Moving statistics on a pandas Series that keep the index of the series, i.e.

        prices.tsprim.ema_stats(20, 10)
    """

    def __init__(self, pandas_obj: pd.Series):
        self._obj = pandas_obj

    def _wrap(self, values) -> pd.Series:
        return pd.Series(values, index=self._obj.index, name=self._obj.name)

    def ema(self, m: int, h: int = None) -> pd.Series:
        return self._wrap(ema(self._obj, m, h))

    def ema_std(self, m: int, h: int = None, init_sig: Optional[float] = None) -> pd.Series:
        return self._wrap(ema_std(self._obj, m, h, init_sig))

    def ema_stats(self, m: int, h: int = None, init_sig: Optional[float] = None) -> pd.DataFrame:
        return pd.DataFrame(ema_stats(self._obj, m, h, init_sig), index=self._obj.index, columns=list(STATS_COLUMNS))

    def entropy_index(self, **kwargs) -> float:
        return entropy_index(self._obj, **kwargs)
