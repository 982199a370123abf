"""Geometry data model for the regional cabling."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

MAXLAYERS = 10  # maximum layers of a sub-detector
MAXSUBDETS = 4  # maximum number of sub-detectors

Region = int
Layer = int
ElementIndex = int


class SubDet(IntEnum):
    """Sub-detector category. UNKNOWN is reserved and never addressable."""

    TIB = 0
    TOB = 1
    TID = 2
    TEC = 3
    UNKNOWN = 4


@dataclass(frozen=True)
class Position:
    """A point in the eta-phi plane of the grid frame."""

    eta: float
    phi: float


@dataclass(frozen=True)
class PositionIndex:
    """A grid cell. Bins may be out of range until normalised."""

    eta: int
    phi: int


@dataclass(frozen=True)
class FedChannelConnection:
    """One readout channel serving a detector unit."""

    fed_id: int
    fed_channel: int
    det_id: int
    apv_pair: int = 0
    n_apv_pairs: int = 0
    fec_crate: int = 0
    fec_slot: int = 0
    fec_ring: int = 0
    ccu_addr: int = 0
    ccu_chan: int = 0
    dcu_id: int = 0


# Channel connections of one element, keyed by detector-unit id.
ElementCabling = dict[int, list[FedChannelConnection]]
