"""Loader for the channel-connection catalog and regional table builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from strip_region_cabling.detid import DEFAULT_LAYOUT, DetIdLayout, layer_from_det_id, subdet_from_det_id
from strip_region_cabling.geometry import MAXLAYERS, FedChannelConnection, SubDet
from strip_region_cabling.region_cabling import CablingTable, RegionCabling


class ConnectionEntry(BaseModel):
    fed_id: int = Field(ge=0)
    fed_channel: int = Field(ge=0)
    apv_pair: int = Field(default=0, ge=0, le=2)
    n_apv_pairs: int = Field(default=0, ge=0, le=3)
    fec_crate: int = 0
    fec_slot: int = 0
    fec_ring: int = 0
    ccu_addr: int = 0
    ccu_chan: int = 0
    dcu_id: int = 0

    def to_connection(self, det_id: int) -> FedChannelConnection:
        return FedChannelConnection(det_id=det_id, **self.model_dump())


class DetectorUnit(BaseModel):
    """One detector unit with its physical position and readout channels."""

    det_id: int = Field(ge=0)
    eta: float = Field(allow_inf_nan=False)
    phi: float = Field(allow_inf_nan=False)
    connections: list[ConnectionEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_apv_pairs(self) -> DetectorUnit:
        pairs = [c.apv_pair for c in self.connections]
        if len(set(pairs)) != len(pairs):
            raise ValueError(f"detector unit {self.det_id} lists the same apv_pair more than once")
        return self


class Catalog(BaseModel):
    detector_units: list[DetectorUnit]


@dataclass
class BuildSummary:
    """Counts collected while placing a catalog into a cabling table."""

    units_placed: int = 0
    connections_placed: int = 0
    skipped_unknown_subdet: list[int] = field(default_factory=list)
    skipped_bad_layer: list[int] = field(default_factory=list)

    @property
    def units_skipped(self) -> int:
        return len(self.skipped_unknown_subdet) + len(self.skipped_bad_layer)


def load_catalog(path: str | Path) -> list[DetectorUnit]:
    """Load and validate a YAML connection catalog."""
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Catalog {path} must be a mapping with a 'detector_units' list")
    try:
        catalog = Catalog.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid catalog {path}: {exc}") from exc

    seen: set[int] = set()
    for unit in catalog.detector_units:
        if unit.det_id in seen:
            raise ValueError(f"Catalog {path} lists det_id {unit.det_id} more than once")
        seen.add(unit.det_id)
    return catalog.detector_units


def build_region_cabling(
    cabling: RegionCabling,
    units: list[DetectorUnit],
    layout: DetIdLayout = DEFAULT_LAYOUT,
) -> BuildSummary:
    """Place every unit in its element slot and install the resulting table."""
    table = CablingTable.empty(cabling.n_regions)
    summary = BuildSummary()

    for unit in units:
        subdet = subdet_from_det_id(unit.det_id, layout)
        if subdet is SubDet.UNKNOWN:
            summary.skipped_unknown_subdet.append(unit.det_id)
            continue
        layer = layer_from_det_id(unit.det_id, layout)
        if layer >= MAXLAYERS:
            summary.skipped_bad_layer.append(unit.det_id)
            continue

        position = cabling.position_from_detector(unit.eta, unit.phi)
        index = cabling.element_index_of_position(position, subdet, layer)
        # Connections are kept ordered by APV pair.
        connections = sorted(
            (c.to_connection(unit.det_id) for c in unit.connections),
            key=lambda c: c.apv_pair,
        )
        table[index][unit.det_id] = connections
        summary.units_placed += 1
        summary.connections_placed += len(connections)

    cabling.set_region_cabling(table)
    return summary
