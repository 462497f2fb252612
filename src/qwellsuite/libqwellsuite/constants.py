"""
Physical and mathematical constants used throughout qwellsuite.

All values are SI and taken from ``scipy.constants`` so that every solver
shares one set of CODATA numbers.  The short names follow the notation of
the quantum-well literature (``hBar``, ``me``, ``kB``).
"""

import numpy as np
from scipy.constants import (
    e as e_SI,
    epsilon_0 as eps0_SI,
    hbar as hbar_SI,
    k as kB_SI,
    m_e as me_SI,
)

pi = np.pi
pio2 = 0.5 * np.pi
twopi = 2.0 * np.pi

hBar = hbar_SI  # Reduced Planck constant [J s]
e = e_SI  # Elementary charge [C]
me = me_SI  # Free electron mass [kg]
kB = kB_SI  # Boltzmann constant [J/K]
eps0 = eps0_SI  # Vacuum permittivity [F/m]

meV = 1e-3 * e  # One milli-electronvolt [J]
angstrom = 1e-10  # [m]
nm = 1e-9  # [m]
