import io
import logging
import zlib

from pySpline.logger import log_exception
from pySpline.stream import BinaryStream
from pySpline.spline.piecewise_polynomial import PiecewisePolynomial
from pySpline.spline.piecewise_polynomial_nd import PiecewisePolynomialND

logger = logging.getLogger(__name__)

# File headers identifying the kind of record that follows
SCALAR_MAGIC = b'PPL1'
ND_MAGIC = b'PPN1'


def _magic_for(traj):
    if isinstance(traj, PiecewisePolynomialND):
        return ND_MAGIC
    if isinstance(traj, PiecewisePolynomial):
        return SCALAR_MAGIC
    raise TypeError(f"Cannot save object of type {type(traj).__name__}")


def save_trajectory_state(traj, filename, compress=True):
    """
    Save a trajectory to a binary file for later reuse.

    Parameters
    ----------
    traj : PiecewisePolynomial or PiecewisePolynomialND
        Trajectory to save
    filename : str
        Filename where the state will be saved
    compress : bool, optional
        zlib-compress the record (default: True)

    Returns
    -------
    bool
        True if successful, False otherwise
    """
    magic = _magic_for(traj)
    logger.info(f"Saving trajectory state to {filename}...")

    stream = BinaryStream()
    if not traj.write(stream):
        logger.error(f"Could not serialize trajectory for {filename}")
        return False

    payload = stream.getvalue()
    if compress:
        payload = zlib.compress(payload)
    flag = b'Z' if compress else b'R'

    try:
        with open(filename, 'wb') as f:
            f.write(magic + flag + payload)
    except OSError:
        log_exception(logger, message=f"Error saving trajectory state to {filename}")
        return False

    logger.info(f"Trajectory state saved successfully to {filename} ({len(payload) / 1024:.2f} KB)")
    return True


def load_trajectory_state(traj, filename):
    """
    Load a trajectory previously written by save_trajectory_state into traj.

    Parameters
    ----------
    traj : PiecewisePolynomial or PiecewisePolynomialND
        Object receiving the loaded data; it must match the saved kind and is
        left unchanged on failure
    filename : str
        Filename containing the saved state

    Returns
    -------
    bool
        True if successful, False otherwise
    """
    magic = _magic_for(traj)
    logger.info(f"Loading trajectory state from {filename}...")

    try:
        with open(filename, 'rb') as f:
            data = f.read()
    except OSError:
        log_exception(logger, message=f"Error loading trajectory state from {filename}")
        return False

    if data[:4] != magic:
        logger.error(f"{filename} does not contain a {type(traj).__name__} record")
        return False

    flag, payload = data[4:5], data[5:]
    if flag == b'Z':
        try:
            payload = zlib.decompress(payload)
        except zlib.error as e:
            logger.error(f"Corrupted compressed data in {filename}: {e}")
            return False
    elif flag != b'R':
        logger.error(f"Unknown record flag {flag!r} in {filename}")
        return False

    if not traj.read(BinaryStream(io.BytesIO(payload))):
        logger.error(f"Malformed trajectory record in {filename}")
        return False

    logger.info(f"Trajectory state loaded successfully from {filename}")
    return True
