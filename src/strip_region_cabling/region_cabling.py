"""Regional view of the strip-tracker cabling.

The cabling is divided into (eta, phi) regions. The part of a region that
belongs to one sub-detector is a wedge, and one layer within a wedge is an
element. Elements are addressed by a single flat ElementIndex.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
import math

from strip_region_cabling.geometry import (
    MAXLAYERS,
    MAXSUBDETS,
    ElementCabling,
    ElementIndex,
    Layer,
    Position,
    PositionIndex,
    Region,
    SubDet,
)

ELEMENTS_PER_REGION = MAXSUBDETS * MAXLAYERS


def element_index(region: Region, subdet: SubDet, layer: Layer) -> ElementIndex:
    if region < 0:
        raise ValueError(f"Region must be >= 0, got {region}")
    if not 0 <= subdet < MAXSUBDETS:
        raise ValueError(f"Sub-detector {subdet!r} has no element slot")
    if not 0 <= layer < MAXLAYERS:
        raise ValueError(f"Layer must be in [0, {MAXLAYERS}), got {layer}")
    return region * ELEMENTS_PER_REGION + subdet * MAXLAYERS + layer


def layer(index: ElementIndex) -> Layer:
    return index % MAXLAYERS


def subdet(index: ElementIndex) -> SubDet:
    return SubDet((index // MAXLAYERS) % MAXSUBDETS)


def region_of_element(index: ElementIndex) -> Region:
    return index // ELEMENTS_PER_REGION


class CablingTable:
    """Flat arena of ElementCabling slots indexed by ElementIndex."""

    def __init__(self, elements: Sequence[ElementCabling]):
        if len(elements) % ELEMENTS_PER_REGION:
            raise ValueError(
                f"Cabling table size {len(elements)} is not a multiple of "
                f"{ELEMENTS_PER_REGION} elements per region"
            )
        self._elements: tuple[ElementCabling, ...] = tuple(elements)

    @classmethod
    def empty(cls, n_regions: int) -> CablingTable:
        return cls([{} for _ in range(n_regions * ELEMENTS_PER_REGION)])

    @property
    def n_regions(self) -> int:
        return len(self._elements) // ELEMENTS_PER_REGION

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[ElementCabling]:
        return iter(self._elements)

    def __getitem__(self, index: ElementIndex) -> ElementCabling:
        return self._elements[index]

    def element(self, index: ElementIndex) -> ElementCabling:
        return self._elements[index]

    def region_elements(self, region: Region) -> tuple[ElementCabling, ...]:
        """Return the slots of one region in (sub-detector, layer) order."""
        start = region * ELEMENTS_PER_REGION
        return self._elements[start : start + ELEMENTS_PER_REGION]

    def wedge(self, region: Region, subdet: SubDet) -> tuple[ElementCabling, ...]:
        start = element_index(region, subdet, 0)
        return self._elements[start : start + MAXLAYERS]


class RegionCabling:
    """Grid codec plus the installed cabling table.

    Built once with the grid parameters; the table is installed with a
    single bulk replace and is read-only afterwards. Replacing the table
    while other threads read it is not supported.
    """

    MAXLAYERS = MAXLAYERS
    MAXSUBDETS = MAXSUBDETS

    element_index = staticmethod(element_index)
    layer = staticmethod(layer)
    subdet = staticmethod(subdet)
    region_of_element = staticmethod(region_of_element)

    def __init__(self, etadivisions: int, phidivisions: int, etamax: float):
        if isinstance(etadivisions, bool) or not isinstance(etadivisions, int) or etadivisions < 1:
            raise ValueError(f"etadivisions must be a positive integer, got {etadivisions!r}")
        if isinstance(phidivisions, bool) or not isinstance(phidivisions, int) or phidivisions < 1:
            raise ValueError(f"phidivisions must be a positive integer, got {phidivisions!r}")
        if not math.isfinite(etamax) or etamax <= 0:
            raise ValueError(f"etamax must be a positive finite number, got {etamax!r}")
        self._etadivisions = etadivisions
        self._phidivisions = phidivisions
        self._etamax = float(etamax)
        self._cabling: CablingTable | None = None

    def __repr__(self) -> str:
        return (
            f"RegionCabling(etadivisions={self._etadivisions}, "
            f"phidivisions={self._phidivisions}, etamax={self._etamax})"
        )

    @property
    def etadivisions(self) -> int:
        return self._etadivisions

    @property
    def phidivisions(self) -> int:
        return self._phidivisions

    @property
    def etamax(self) -> float:
        return self._etamax

    @property
    def n_regions(self) -> int:
        return self._etadivisions * self._phidivisions

    @property
    def n_elements(self) -> int:
        return self.n_regions * ELEMENTS_PER_REGION

    # Cabling table.

    def set_region_cabling(self, cabling: CablingTable | Sequence[ElementCabling]) -> None:
        """Install the complete cabling table, replacing any previous one."""
        if not isinstance(cabling, CablingTable):
            cabling = CablingTable(cabling)
        if len(cabling) != self.n_elements:
            raise ValueError(
                f"Cabling table holds {len(cabling)} elements but the "
                f"{self._etadivisions}x{self._phidivisions} grid needs {self.n_elements}"
            )
        self._cabling = cabling

    def get_region_cabling(self) -> CablingTable:
        if self._cabling is None:
            raise RuntimeError("No cabling table installed; call set_region_cabling() first")
        return self._cabling

    @property
    def has_cabling(self) -> bool:
        return self._cabling is not None

    def element_cabling(self, index: ElementIndex) -> ElementCabling:
        return self.get_region_cabling()[index]

    # Region, region-index and eta/phi position.

    def region_dimensions(self) -> tuple[float, float]:
        return (2.0 * self._etamax) / self._etadivisions, 2.0 * math.pi / self._phidivisions

    def position(self, index: PositionIndex) -> Position:
        """Return the centre of a cell. Phi is not wrapped."""
        d_eta, d_phi = self.region_dimensions()
        return Position(d_eta * index.eta + d_eta / 2.0, d_phi * index.phi + d_phi / 2.0)

    def position_of_region(self, region: Region) -> Position:
        return self.position(self.position_index(region))

    def position_index(self, region: Region) -> PositionIndex:
        return PositionIndex(region // self._phidivisions, region % self._phidivisions)

    def region(self, index: PositionIndex) -> Region:
        return index.eta * self._phidivisions + index.phi

    def index_of_position(self, position: Position) -> PositionIndex:
        """Return the cell containing position.

        Eta beyond the grid, infinities included, is clamped onto the first or
        last eta bin; phi is reduced modulo 2*pi. A NaN eta or a non-finite
        phi has no cell and raises ValueError.
        """
        if math.isnan(position.eta) or not math.isfinite(position.phi):
            raise ValueError(f"{position} has no grid cell")
        d_eta, d_phi = self.region_dimensions()
        eta = int(min(max(position.eta / d_eta, 0.0), self._etadivisions - 1))
        phi = min(math.floor((position.phi % (2.0 * math.pi)) / d_phi), self._phidivisions - 1)
        return PositionIndex(eta, phi)

    def region_of_position(self, position: Position) -> Region:
        return self.region(self.index_of_position(position))

    def position_from_detector(self, eta: float, phi: float) -> Position:
        """Map physical (eta, phi) onto the grid frame, whose eta origin is -etamax."""
        return Position(eta + self._etamax, phi)

    def periodic_index(self, index: PositionIndex) -> PositionIndex | None:
        """Normalise phi by one period; None if the eta bin lies outside the grid."""
        if not 0 <= index.eta < self._etadivisions:
            return None
        phi = index.phi
        if phi >= self._phidivisions:
            phi -= self._phidivisions
        elif phi < 0:
            phi += self._phidivisions
        if phi == index.phi:
            return index
        return PositionIndex(index.eta, phi)

    def element_index_of_position(self, position: Position, subdet: SubDet, layer: Layer) -> ElementIndex:
        return element_index(self.region_of_position(position), subdet, layer)
