"""
pySpline - piecewise polynomial trajectories

This package represents trajectories built from consecutive polynomial
segments, evaluates and differentiates them, edits them structurally
(append, concatenate, split, trim, select) and analyses discontinuities
at their breakpoints.
"""
from . import logger

# Package-level logger object for easy import
log = logger.default_logger


def debug(msg, *args, **kwargs):
    log.debug(msg, *args, **kwargs)


def info(msg, *args, **kwargs):
    log.info(msg, *args, **kwargs)


def warning(msg, *args, **kwargs):
    log.warning(msg, *args, **kwargs)


def error(msg, *args, **kwargs):
    log.error(msg, *args, **kwargs)


def critical(msg, *args, **kwargs):
    log.critical(msg, *args, **kwargs)


def log_exception(message="An exception occurred", exc_info=None):
    logger.log_exception(log, exc_info, message)


from pySpline.pyspline_units import unit_manager, to_internal_time, parse_value_with_units

from pySpline.stream import BinaryStream, StreamError
from pySpline.spline import (PiecewisePolynomial, PiecewisePolynomialND, InvalidStateError,
                             constant, linear, piecewise_linear,
                             constant_nd, linear_nd, piecewise_linear_nd, subspace)
from pySpline.save_utils import save_trajectory_state, load_trajectory_state
from pySpline.load_trajectory_from_file import load_trajectory_from_file, trajectory_from_data

__all__ = [
    'PiecewisePolynomial', 'PiecewisePolynomialND', 'InvalidStateError',
    'constant', 'linear', 'piecewise_linear',
    'constant_nd', 'linear_nd', 'piecewise_linear_nd', 'subspace',
    'BinaryStream', 'StreamError',
    'save_trajectory_state', 'load_trajectory_state',
    'load_trajectory_from_file', 'trajectory_from_data',
    'unit_manager', 'to_internal_time', 'parse_value_with_units',
    'debug', 'info', 'warning', 'error', 'critical', 'log_exception',
]

# Package version
__version__ = '0.1.0'
