"""Selection of cabling elements around a position.

Selections never copy channel data: each surviving element is handed to a
sink, typically a deferred getter that fetches the data later.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
import math

from strip_region_cabling.geometry import (
    ElementCabling,
    ElementIndex,
    Layer,
    Position,
    PositionIndex,
    SubDet,
)
from strip_region_cabling.region_cabling import CablingTable, RegionCabling, element_index

ElementSink = Callable[[ElementIndex], None]


class ElementRequests:
    """Ordered record of requested elements, resolvable against a table."""

    def __init__(self) -> None:
        self._indices: list[ElementIndex] = []

    def __call__(self, index: ElementIndex) -> None:
        self._indices.append(index)

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[ElementIndex]:
        return iter(self._indices)

    @property
    def indices(self) -> list[ElementIndex]:
        return list(self._indices)

    def resolve(self, table: CablingTable) -> Iterator[tuple[ElementIndex, ElementCabling]]:
        for index in self._indices:
            yield index, table[index]


def select_element(sink: ElementSink, index: ElementIndex) -> None:
    sink(index)


def window_indices(
    cabling: RegionCabling,
    position: Position,
    delta_eta: float,
    delta_phi: float,
) -> Iterator[PositionIndex]:
    """Yield every grid cell overlapping the window, eta-major.

    Half-widths are whole cells: int(delta / cell size). Cells beyond the
    eta range are dropped, phi wraps around.
    """
    if math.isnan(delta_eta) or math.isnan(delta_phi) or delta_eta < 0 or delta_phi < 0:
        raise ValueError(f"Window half-widths must be >= 0, got ({delta_eta}, {delta_phi})")
    d_eta, d_phi = cabling.region_dimensions()
    centre = cabling.index_of_position(position)
    # Rows beyond the grid height are always dropped.
    deta = int(min(delta_eta / d_eta, cabling.etadivisions))
    # A window wider than the ring must not wrap more than one period.
    dphi = int(min(delta_phi / d_phi, cabling.phidivisions // 2))

    for ieta in range(2 * deta + 1):
        for iphi in range(2 * dphi + 1):
            candidate = PositionIndex(centre.eta - deta + ieta, centre.phi - dphi + iphi)
            index = cabling.periodic_index(candidate)
            if index is None:
                continue
            yield index


def select_window(
    cabling: RegionCabling,
    sink: ElementSink,
    position: Position,
    delta_eta: float,
    delta_phi: float,
    subdet: SubDet,
    layer: Layer,
) -> int:
    """Request the (subdet, layer) element of every cell in the window.

    Returns the number of requests issued.
    """
    count = 0
    for index in window_indices(cabling, position, delta_eta, delta_phi):
        sink(element_index(cabling.region(index), subdet, layer))
        count += 1
    return count


def cone_half_widths(dR: float) -> tuple[float, float]:
    """Square window used for a cone of radius dR.

    Both half-widths are dR**2 / sqrt(2). Cells in the corners of the
    square may lie outside the cone; they are selected anyway.
    """
    if dR < 0:
        raise ValueError(f"Cone radius must be >= 0, got {dR}")
    half = dR * dR / math.sqrt(2.0)
    return half, half


def select_cone(
    cabling: RegionCabling,
    sink: ElementSink,
    position: Position,
    dR: float,
    subdet: SubDet,
    layer: Layer,
) -> int:
    delta_eta, delta_phi = cone_half_widths(dR)
    return select_window(cabling, sink, position, delta_eta, delta_phi, subdet, layer)
