import json
import logging
import os

import yaml

from pySpline.pyspline_units import unit_manager
from pySpline.spline.piecewise_polynomial import PiecewisePolynomial
from pySpline.spline.constructors import (constant, linear, piecewise_linear,
                                          constant_nd, linear_nd, piecewise_linear_nd)

logger = logging.getLogger(__name__)

TRAJECTORY_TYPES = ("constant", "linear", "piecewise_linear", "segments")


def _time(value):
    """Numbers are taken in the internal time unit, strings may carry units"""
    return float(unit_manager.to_internal_time(unit_manager.parse_value(value)))


def _is_vector(value):
    return isinstance(value, (list, tuple))


def read_trajectory_data(filename):
    """
    Read the raw description dictionary from a YAML or JSON file.
    """
    file_ext = os.path.splitext(filename)[1].lower()
    if file_ext in ['.yml', '.yaml']:
        logger.info(f"Loading YAML file: {filename}")
        with open(filename, 'r', encoding='utf-8') as file:
            data = yaml.safe_load(file)
    else:  # Default to JSON
        logger.info(f"Loading JSON file: {filename}")
        with open(filename, 'r', encoding='utf-8') as file:
            data = json.load(file)

    if not isinstance(data, dict):
        raise ValueError(f"{filename} does not describe a trajectory mapping")
    return data


def trajectory_from_data(data):
    """
    Build a trajectory from a description dictionary.

    Supported ``type`` values are constant, linear, piecewise_linear and
    segments. Vector milestones produce a PiecewisePolynomialND.
    """
    traj_type = data.get("type", "piecewise_linear")
    if traj_type not in TRAJECTORY_TYPES:
        raise ValueError(f"Unknown trajectory type '{traj_type}', expected one of {TRAJECTORY_TYPES}")

    times = [_time(t) for t in data.get("times", [])]

    if traj_type == "segments":
        coefficients = data["coefficients"]
        time_shifts = data.get("time_shifts")
        if time_shifts is not None:
            time_shifts = [_time(s) for s in time_shifts]
        traj = PiecewisePolynomial(coefficients, times, time_shifts, relative=data.get("relative", False))
        logger.info(f"Read {traj.num_segments} polynomial segments.")
        return traj

    milestones = data["milestones"]
    nd = data.get("dimensions") == "nd" or (bool(milestones) and _is_vector(milestones[0]))

    if traj_type == "piecewise_linear":
        traj = piecewise_linear_nd(milestones, times) if nd else piecewise_linear(milestones, times)
        logger.info(f"Read {len(milestones)} milestones.")
        return traj

    if len(times) != 2:
        raise ValueError(f"A {traj_type} trajectory needs exactly two times, got {len(times)}")
    ta, tb = times
    if traj_type == "constant":
        value = milestones[0]
        return constant_nd(value, ta, tb) if nd else constant(value, ta, tb)

    a, b = milestones
    return linear_nd(a, b, ta, tb) if nd else linear(a, b, ta, tb)


def load_trajectory_from_file(filename):
    """
    Reads a trajectory description from a JSON or YAML file

    Parameters
    ----------
    filename : str
        Path to the input file (JSON or YAML format)

    Returns
    -------
    PiecewisePolynomial or PiecewisePolynomialND
    """
    logger.info(f"Using internal time unit: {unit_manager.INTERNAL_TIME_UNIT}")
    return trajectory_from_data(read_trajectory_data(filename))
