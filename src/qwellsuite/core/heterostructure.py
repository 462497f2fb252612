"""
Heterostructure array generation.

A heterostructure is a stack of layers, each with a width, an alloy
composition vector and a volume doping.  The stack (one period) may be
repeated any number of times.  This module expands the layer description
onto a uniform spatial grid so that the solvers get the alloy fraction
and doping at every point.

The layer file (``s.r``) has one row per layer:

    width  x_1  [x_2 ...]  n3D

with the width in nm or angstrom and the doping in units of 1e18 cm^-3.
"""

from enum import IntEnum
from typing import Sequence

import numpy as np

from ..libqwellsuite.constants import angstrom, nm
from ..libqwellsuite.errors import DomainError, ValidationError
from ..libqwellsuite.fileio import read_table, write_table
from ..libqwellsuite.logger import get_logger

log = get_logger(__name__)

# Doping in layer files is given in 1e18 cm^-3
_DOPING_UNIT = 1e24  # [m^-3]


class Unit(IntEnum):
    """Unit of measurement for layer thickness."""
    NM = 0
    ANGSTROM = 1


_UNIT_SCALE = {Unit.NM: nm, Unit.ANGSTROM: angstrom}


class Heterostructure:
    """
    A stack of layers making up a quantum heterostructure.

    Parameters
    ----------
    x_layer : sequence of array_like
        Alloy fractions in each layer, one vector per layer; every vector
        has the same number of components
    W_layer : array_like
        Width of each layer [m]
    n3D_layer : array_like
        Donor density in each layer [m^-3]
    nz_1per : int
        Number of spatial points in each period
    n_periods : int, optional
        Number of periods in the structure (default 1)
    """

    def __init__(self,
                 x_layer: Sequence[Sequence[float]],
                 W_layer: Sequence[float],
                 n3D_layer: Sequence[float],
                 nz_1per: int,
                 n_periods: int = 1):
        x_layer = np.atleast_2d(np.asarray(x_layer, dtype=np.float64))
        W_layer = np.asarray(W_layer, dtype=np.float64)
        n3D_layer = np.asarray(n3D_layer, dtype=np.float64)

        n_layers = W_layer.size
        if n_layers == 0:
            raise ValidationError("A heterostructure needs at least one layer")
        if x_layer.shape[0] != n_layers or n3D_layer.size != n_layers:
            raise ValidationError(
                f"Layer data mismatch: {n_layers} widths, {x_layer.shape[0]} alloy "
                f"vectors and {n3D_layer.size} doping values."
            )
        if np.any(W_layer <= 0.0):
            raise ValidationError("All layer widths must be positive")
        if n_periods < 1:
            raise ValidationError(f"Number of periods must be at least 1; got {n_periods}")
        if nz_1per < 2:
            raise ValidationError(f"Need at least 2 points per period; got {nz_1per}")

        self._n_alloy = x_layer.shape[1]
        self._x_layer = x_layer
        self._W_layer = W_layer
        self._n3D_layer = n3D_layer
        self._n_periods = int(n_periods)
        self._nz_1per = int(nz_1per)

        # Height of the top of each layer within one period
        self._top_1per = np.cumsum(W_layer)
        self._dz = self.get_period_length() / self._nz_1per

        nz = self._nz_1per * self._n_periods
        self._z = np.arange(nz) * self._dz

        # Layer index for each point of one period; nudged to absorb
        # round-off exactly at an interface
        z_1per = np.arange(self._nz_1per) * self._dz
        iL_1per = np.searchsorted(self._top_1per, z_1per + 1e-6 * self._dz, side="right")
        iL_1per = np.minimum(iL_1per, n_layers - 1)
        self._iL_at_point = np.tile(iL_1per, self._n_periods)

        self._x = x_layer[self._iL_at_point]
        self._n3D = n3D_layer[self._iL_at_point]

        # Index of the last point inside each layer of the entire structure
        global_layer = self._iL_at_point + n_layers * (np.arange(nz) // self._nz_1per)
        n_total = n_layers * self._n_periods
        self._layer_top_index = np.zeros(n_total, dtype=np.int64)
        last = 0
        for iL in range(n_total):
            members = np.flatnonzero(global_layer == iL)
            if members.size > 0:
                last = int(members[-1])
            self._layer_top_index[iL] = last

        log.debug("Heterostructure: %d layers x %d periods, %d points, dz = %g m",
                  n_layers, self._n_periods, nz, self._dz)

    # ------------------------------------------------------------------
    # Construction from file
    # ------------------------------------------------------------------

    @staticmethod
    def read_layers_from_file(filename: str, thickness_unit: Unit = Unit.NM):
        """
        Read the layer table.

        Returns
        -------
        x_layer : ndarray, shape (n_layers, n_alloy)
        W_layer : ndarray [m]
        n3D_layer : ndarray [m^-3]
        """
        cols = read_table(filename)
        if len(cols) < 3:
            raise ValidationError(
                f"Layer file '{filename}' needs at least 3 columns (width, alloy..., doping); "
                f"found {len(cols)}."
            )
        W_layer = cols[0] * _UNIT_SCALE[Unit(thickness_unit)]
        x_layer = np.column_stack(cols[1:-1])
        n3D_layer = cols[-1] * _DOPING_UNIT
        return x_layer, W_layer, n3D_layer

    @classmethod
    def create_from_file(cls,
                         layer_filename: str,
                         thickness_unit: Unit,
                         nz_1per: int,
                         n_periods: int = 1) -> "Heterostructure":
        """Create a heterostructure with a fixed number of points per period."""
        x_layer, W_layer, n3D_layer = cls.read_layers_from_file(layer_filename, thickness_unit)
        return cls(x_layer, W_layer, n3D_layer, nz_1per, n_periods)

    @classmethod
    def create_from_file_auto_nz(cls,
                                 layer_filename: str,
                                 thickness_unit: Unit,
                                 n_periods: int = 1,
                                 dz_max: float = 1e-10) -> "Heterostructure":
        """
        Create a heterostructure with the fewest points per period such that
        the spacing does not exceed *dz_max* [m].
        """
        if dz_max <= 0.0:
            raise ValidationError(f"Maximum spacing must be positive; got {dz_max}")
        x_layer, W_layer, n3D_layer = cls.read_layers_from_file(layer_filename, thickness_unit)
        L_per = W_layer.sum()
        nz_1per = max(int(np.ceil(L_per / dz_max * (1.0 - 1e-12))), 2)
        return cls(x_layer, W_layer, n3D_layer, nz_1per, n_periods)

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------

    def get_nz_1per(self) -> int:
        """Number of sampling points in one period."""
        return self._nz_1per

    def get_nz(self) -> int:
        """Total number of sampling points in the entire structure."""
        return self._z.size

    def get_z(self) -> np.ndarray:
        return self._z.copy()

    def get_dz(self) -> float:
        return self._dz

    def get_x_array(self) -> np.ndarray:
        """Alloy fractions at each point, shape (nz, n_alloy)."""
        return self._x.copy()

    def get_n3D_array(self) -> np.ndarray:
        """Volume doping at each point [m^-3]."""
        return self._n3D.copy()

    def get_n_alloy(self) -> int:
        return self._n_alloy

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def get_layer_widths(self) -> np.ndarray:
        return self._W_layer.copy()

    def get_n_layers_per_period(self) -> int:
        return self._W_layer.size

    def get_n_layers_total(self) -> int:
        return self._W_layer.size * self._n_periods

    def get_period_length(self) -> float:
        return float(self._W_layer.sum())

    def get_total_length(self) -> float:
        return self.get_period_length() * self._n_periods

    def _check_layer_index(self, iL: int) -> None:
        if iL < 0 or iL >= self.get_n_layers_total():
            raise DomainError(
                f"Layer index {iL} out of range [0, {self.get_n_layers_total() - 1}]"
            )

    def get_x_in_layer(self, iL: int, ialloy: int) -> float:
        """Alloy fraction of component *ialloy* in layer *iL*."""
        self._check_layer_index(iL)
        if ialloy < 0 or ialloy >= self._n_alloy:
            raise DomainError(f"Alloy component {ialloy} out of range [0, {self._n_alloy - 1}]")
        return float(self._x_layer[iL % self.get_n_layers_per_period(), ialloy])

    def get_n3D_in_layer(self, iL: int) -> float:
        self._check_layer_index(iL)
        return float(self._n3D_layer[iL % self.get_n_layers_per_period()])

    def get_n3D_at_point(self, iz: int) -> float:
        if iz < 0 or iz >= self.get_nz():
            raise DomainError(f"Point index {iz} out of range [0, {self.get_nz() - 1}]")
        return float(self._n3D[iz])

    def get_height_at_top_of_layer(self, iL: int) -> float:
        """Height of the top interface of layer *iL* [m]."""
        self._check_layer_index(iL)
        n_layers = self.get_n_layers_per_period()
        iper, iL_local = divmod(iL, n_layers)
        return iper * self.get_period_length() + float(self._top_1per[iL_local])

    def get_layer_top_index(self, iL: int) -> int:
        """Index of the last grid point inside layer *iL*."""
        self._check_layer_index(iL)
        return int(self._layer_top_index[iL])

    def get_layer_top_indices(self) -> np.ndarray:
        return self._layer_top_index.copy()

    def get_layer_from_height(self, z: float) -> int:
        """Index of the layer that contains height *z*."""
        L_tot = self.get_total_length()
        if z < 0.0 or z > L_tot:
            raise DomainError(f"Height {z} m lies outside the structure (0, {L_tot})")

        n_layers = self.get_n_layers_per_period()
        L_per = self.get_period_length()
        iper = min(int(z // L_per), self._n_periods - 1)
        z_local = z - iper * L_per
        iL_local = min(int(np.searchsorted(self._top_1per, z_local, side="right")), n_layers - 1)
        return iper * n_layers + iL_local

    def point_is_in_layer(self, z: float, iL: int) -> bool:
        """True if height *z* lies within layer *iL*."""
        self._check_layer_index(iL)
        top = self.get_height_at_top_of_layer(iL)
        bottom = top - float(self._W_layer[iL % self.get_n_layers_per_period()])
        return bottom <= z < top

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write_profiles(self, alloy_filename: str = "x.r", doping_filename: str = "d.r") -> None:
        """Write the alloy and doping profiles as (z, value...) tables."""
        write_table(alloy_filename, self._z, *self._x.T)
        write_table(doping_filename, self._z, self._n3D)
