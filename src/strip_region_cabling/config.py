"""Pydantic models for YAML configuration parsing."""

from __future__ import annotations

import math
from pathlib import Path

import yaml
from pydantic import BaseModel, PrivateAttr, model_validator

from strip_region_cabling.catalog import BuildSummary, DetectorUnit, build_region_cabling, load_catalog
from strip_region_cabling.detid import DetIdLayout, SubDetName
from strip_region_cabling.geometry import SubDet
from strip_region_cabling.region_cabling import RegionCabling


class GridConfig(BaseModel):
    eta_divisions: int
    phi_divisions: int
    eta_max: float


class CatalogConfig(BaseModel):
    file: Path


class ReportConfig(BaseModel):
    subdets: list[SubDetName] | None = None
    top_regions: int = 5


class VisualizerConfig(BaseModel):
    colorscale: str = "Viridis"


class Config(BaseModel):
    grid: GridConfig
    catalog: CatalogConfig
    det_id_layout: DetIdLayout = DetIdLayout()
    report: ReportConfig = ReportConfig()
    visualizer: VisualizerConfig = VisualizerConfig()

    _units: list[DetectorUnit] | None = PrivateAttr(default=None)
    _config_path: Path | None = PrivateAttr(default=None)

    @property
    def units(self) -> list[DetectorUnit]:
        if self._units is None:
            self._units = load_catalog(self.catalog.file)
        return self._units

    @property
    def report_subdets(self) -> list[SubDet]:
        names = self.report.subdets or ["TIB", "TOB", "TID", "TEC"]
        return [SubDet[name] for name in names]

    def make_region_cabling(self) -> RegionCabling:
        """Return an empty RegionCabling for the configured grid."""
        return RegionCabling(self.grid.eta_divisions, self.grid.phi_divisions, self.grid.eta_max)

    def build(self) -> tuple[RegionCabling, BuildSummary]:
        """Construct the grid and install the catalog into it."""
        cabling = self.make_region_cabling()
        summary = build_region_cabling(cabling, self.units, self.det_id_layout)
        return cabling, summary

    @model_validator(mode="after")
    def validate_semantics(self) -> Config:
        if self.grid.eta_divisions < 1 or self.grid.phi_divisions < 1:
            raise ValueError("grid.eta_divisions and grid.phi_divisions must both be >= 1")
        if not math.isfinite(self.grid.eta_max) or self.grid.eta_max <= 0:
            raise ValueError("grid.eta_max must be > 0")
        if self.report.top_regions < 0:
            raise ValueError("report.top_regions must be >= 0")
        if self.report.subdets is not None and not self.report.subdets:
            raise ValueError("report.subdets must list at least one sub-detector when set")
        return self


def load_config(path: str | Path) -> Config:
    """Load and validate a YAML configuration file."""
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f)

    # Resolve the catalog path relative to the config location before model validation.
    catalog_file = Path(raw["catalog"]["file"])
    if not catalog_file.is_absolute():
        raw["catalog"]["file"] = str((path.parent / catalog_file).resolve())

    config = Config.model_validate(raw)
    config._config_path = path
    return config
