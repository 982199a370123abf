"""Functions for generating an ASCII report of an installed cabling."""

from __future__ import annotations

from collections import Counter

from strip_region_cabling.catalog import BuildSummary
from strip_region_cabling.config import Config
from strip_region_cabling.geometry import MAXLAYERS, SubDet
from strip_region_cabling.region_cabling import RegionCabling, element_index


def _count_subdet_layers(cabling: RegionCabling, subdet: SubDet) -> tuple[Counter[int], Counter[int]]:
    """Return (units per layer, connections per layer) for one sub-detector."""
    table = cabling.get_region_cabling()
    units: Counter[int] = Counter()
    connections: Counter[int] = Counter()
    for region in range(cabling.n_regions):
        for layer, element in enumerate(table.wedge(region, subdet)):
            if not element:
                continue
            units[layer] += len(element)
            connections[layer] += sum(len(conns) for conns in element.values())
    return units, connections


def region_connection_counts(cabling: RegionCabling) -> list[int]:
    """Return the number of channel connections in each region."""
    table = cabling.get_region_cabling()
    return [
        sum(len(conns) for element in table.region_elements(region) for conns in element.values())
        for region in range(cabling.n_regions)
    ]


def generate_report(
    cabling: RegionCabling,
    config: Config | None = None,
    summary: BuildSummary | None = None,
) -> str:
    """Generates a detailed, multi-line ASCII report of the regional cabling."""
    table = cabling.get_region_cabling()
    d_eta, d_phi = cabling.region_dimensions()
    subdets = config.report_subdets if config else [s for s in SubDet if s is not SubDet.UNKNOWN]
    top_regions = config.report.top_regions if config else 5

    report_lines = [
        "--- Regional Cabling Report ---",
        "",
        "** Grid Dimensions **",
        f"  - Divisions (eta x phi): {cabling.etadivisions} x {cabling.phidivisions}",
        f"  - Eta Extent: +/-{cabling.etamax:.3f}",
        f"  - Region Size (deta x dphi): {d_eta:.4f} x {d_phi:.4f} rad",
        f"  - Regions: {cabling.n_regions}",
        f"  - Element Slots: {cabling.n_elements}",
        "",
    ]

    occupied_elements = sum(1 for element in table if element)
    per_region = region_connection_counts(cabling)
    occupied_regions = sum(1 for n in per_region if n)
    total_units = sum(len(element) for element in table)
    total_connections = sum(per_region)

    report_lines.append("** Occupancy **")
    report_lines.append(f"  - Detector Units: {total_units}")
    report_lines.append(f"  - Channel Connections: {total_connections}")
    report_lines.append(f"  - Occupied Elements: {occupied_elements}")
    fraction = (occupied_regions / cabling.n_regions) * 100.0 if cabling.n_regions else 0.0
    report_lines.append(f"  - Occupied Regions: {occupied_regions} ({fraction:.2f}%)")
    if summary is not None:
        report_lines.append(f"  - Units Skipped (unknown sub-detector): {len(summary.skipped_unknown_subdet)}")
        report_lines.append(f"  - Units Skipped (layer out of range): {len(summary.skipped_bad_layer)}")
    report_lines.append("")

    report_lines.append("** Details Per Sub-Detector **")
    for subdet in subdets:
        units, connections = _count_subdet_layers(cabling, subdet)
        report_lines.append(
            f"  - {subdet.name}: {sum(units.values())} units, {sum(connections.values())} connections"
        )
        for layer in range(MAXLAYERS):
            if units[layer]:
                report_lines.append(
                    f"      layer {layer}: {units[layer]} units, {connections[layer]} connections"
                )
    report_lines.append("")

    if top_regions and total_connections:
        report_lines.append("** Busiest Regions **")
        ranked = sorted(range(cabling.n_regions), key=lambda r: (-per_region[r], r))
        for region in ranked[:top_regions]:
            if not per_region[region]:
                break
            index = cabling.position_index(region)
            first = element_index(region, SubDet.TIB, 0)
            report_lines.append(
                f"  - region {region} (eta bin {index.eta}, phi bin {index.phi}, "
                f"elements {first}-{first + len(table.region_elements(region)) - 1}): "
                f"{per_region[region]} connections"
            )
        report_lines.append("")

    report_lines.append("--- End of Report ---")

    return "\n".join(report_lines)
