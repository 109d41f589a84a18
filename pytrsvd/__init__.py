from .bidiagonal import Bidiagonal, BrokenArrowBidiagonal, SmallSVD
from .factorizations import BidiagonalFactorization, build
from .restart import truncate, extend
from .convergence import error_bounds, is_converged
from .thick_restart import thick_restart_bidiag, default_parameters
from .exceptions import PreconditionError, InvariantSubspaceError, NotConvergedWarning
from .logs import config_logger
