"""
Units handling module for pySpline package.

Trajectory breakpoints are stored as plain floats expressed in the internal
time unit held by the ``UnitManager``. Public entry points accept
``pint.Quantity`` times (or strings such as ``"250 ms"``) and convert them
through this module so that the core never sees a quantity object.
"""
import logging

import pint

logger = logging.getLogger(__name__)

DEFAULT_TIME_UNIT = 's'
DEFAULT_TOLERANCE = 1e-9


class UnitManager:
    """
    Central manager for time units and numeric tolerances throughout pySpline

    This singleton class provides a consistent interface for all unit operations
    and ensures that unit settings are synchronized across the package.
    """
    _instance = None
    _initialized = False

    def __new__(cls, time_unit=DEFAULT_TIME_UNIT, cache_folder=None):
        if cls._instance is None:
            cls._instance = super(UnitManager, cls).__new__(cls)
            cls._instance._initialize(time_unit, cache_folder)
        return cls._instance

    def _initialize(self, time_unit=DEFAULT_TIME_UNIT, cache_folder=None):
        """Initialize the unit manager with the specified internal time unit"""
        if self._initialized:
            logger.warning("UnitManager already initialized - ignoring re-initialization request")
            return

        self.ureg = pint.UnitRegistry(cache_folder=cache_folder)
        self.registered_modules = []
        self.tolerance = DEFAULT_TOLERANCE
        self.INTERNAL_TIME_UNIT = None
        self.set_internal_time_unit(time_unit)

        self._initialized = True
        logger.debug(f"UnitManager initialized with internal time unit {self.INTERNAL_TIME_UNIT}")

    def set_internal_time_unit(self, unit):
        """
        Change the unit in which plain float times are interpreted.

        Parameters
        ----------
        unit : str
            Any pint unit with time dimensionality ('s', 'ms', 'min', ...)
        """
        parsed = self.ureg.parse_units(unit)
        if parsed.dimensionality != self.ureg.second.dimensionality:
            raise ValueError(f"Unit '{unit}' is not a time unit")
        self.INTERNAL_TIME_UNIT = str(parsed)

        for module_update_func in self.registered_modules:
            module_update_func(self.INTERNAL_TIME_UNIT)

    def register_for_unit_updates(self, update_func):
        """Register a callable notified with the new unit whenever it changes"""
        if update_func not in self.registered_modules:
            self.registered_modules.append(update_func)

    def set_tolerance(self, tolerance):
        if tolerance < 0:
            raise ValueError("Tolerance must be non-negative")
        self.tolerance = float(tolerance)

    def parse_value(self, value):
        """
        Parse a number or a string that may carry units.

        Returns a pint.Quantity when the string has units, otherwise a float.
        """
        if isinstance(value, str):
            parsed = self.ureg.parse_expression(value)
            if isinstance(parsed, pint.Quantity) and not parsed.dimensionless:
                return parsed
            return float(parsed.magnitude if isinstance(parsed, pint.Quantity) else parsed)
        return value

    def to_internal_time(self, t):
        """
        Convert a time value to a magnitude in the internal time unit.

        Plain numbers and numpy arrays are assumed to already be expressed in
        the internal unit and are returned unchanged.
        """
        if isinstance(t, str):
            t = self.parse_value(t)
        if isinstance(t, pint.Quantity):
            if not t.check('[time]'):
                raise ValueError(f"Time value {t} does not have time dimensionality")
            return t.to(self.INTERNAL_TIME_UNIT).magnitude
        return t


unit_manager = UnitManager()


def to_internal_time(t):
    """Module level shortcut for ``unit_manager.to_internal_time``"""
    return unit_manager.to_internal_time(t)


def parse_value_with_units(value_str):
    """
    Parse a string with units using UnitManager's registry.

    Parameters
    ----------
    value_str : str
        String containing a value and potentially unit information.

    Returns
    -------
    pint.Quantity or float
        Parsed value.
    """
    try:
        return unit_manager.parse_value(value_str)
    except Exception as e:
        logger.error(f"Error parsing value '{value_str}': {e}")
        raise
