from jax import config

config.update("jax_enable_x64", True)

from ._transforms import *
from ._filters import *
from ._fields import *
from ._particles import *
from ._boundary_conditions import *
from ._algorithms import *
from ._distributions import *
from ._diagnostics import *
from ._sinks import *
from ._simulation import *
from ._plot import *
