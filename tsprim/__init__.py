from tsprim.impl.config import Config, get_config, set_config
from tsprim.impl.error_handling import InvalidArgument
from tsprim.math import *
from tsprim.signals import *
from tsprim.stats import *

from . import stats

__version__ = "0.1.0"
