"""
Boundary conditions at the interfaces of a finite quantum well.

Each strategy fixes two things used when the matching equation is
assembled:

* the effective mass used for the decay constant in the barrier, and
* the factor applied to the barrier term, i.e. which combination of
  psi' is continuous across the interface.

=========================  ============  ===================
strategy                   barrier mass  barrier-term factor
=========================  ============  ===================
``equal-mass``             m_w           1
``continuous-derivative``  m_b           1
``continuous-flux``        m_b           m_w / m_b
=========================  ============  ===================
"""

from abc import ABC, abstractmethod

from ..libqwellsuite.errors import ValidationError


class BoundaryCondition(ABC):
    """Interface matching rule for a finite well."""

    name = ""

    @abstractmethod
    def barrier_mass(self, m_w: float, m_b: float) -> float:
        """Mass used for the decay constant in the barrier [kg]."""

    @abstractmethod
    def mass_ratio(self, m_w: float, m_b: float) -> float:
        """Factor on the barrier term in the matching equation."""

    def __repr__(self):
        return f"{type(self).__name__}()"


class EqualMass(BoundaryCondition):
    """Barrier mass taken equal to the well mass."""

    name = "equal-mass"

    def barrier_mass(self, m_w, m_b):
        return m_w

    def mass_ratio(self, m_w, m_b):
        return 1.0


class ContinuousDerivative(BoundaryCondition):
    """psi and dpsi/dz continuous across the interface."""

    name = "continuous-derivative"

    def barrier_mass(self, m_w, m_b):
        return m_b

    def mass_ratio(self, m_w, m_b):
        return 1.0


class ContinuousFlux(BoundaryCondition):
    """psi and (1/m) dpsi/dz continuous across the interface (BenDaniel-Duke)."""

    name = "continuous-flux"

    def barrier_mass(self, m_w, m_b):
        return m_b

    def mass_ratio(self, m_w, m_b):
        return m_w / m_b


_STRATEGIES = {cls.name: cls for cls in (EqualMass, ContinuousDerivative, ContinuousFlux)}


def boundary_condition(name: str) -> BoundaryCondition:
    """
    Select a boundary-condition strategy by name.

    Raises
    ------
    ValidationError
        For an unknown name
    """
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValidationError(
            f"Unknown boundary condition '{name}'; expected one of {', '.join(_STRATEGIES)}"
        ) from None
