"""Plotly eta-phi occupancy map of the regional cabling."""

from __future__ import annotations

from pathlib import Path

import plotly.graph_objects as go

from strip_region_cabling.geometry import MAXLAYERS, SubDet
from strip_region_cabling.region_cabling import RegionCabling, element_index

EMPTY_COLOR = "rgba(236, 236, 236, 1.0)"


def occupancy_matrix(
    cabling: RegionCabling,
    subdet: SubDet | None = None,
    layer: int | None = None,
) -> list[list[int]]:
    """Return connection counts as rows of phi bins, one row per eta bin.

    subdet and layer restrict the count to matching elements; None means all.
    """
    table = cabling.get_region_cabling()
    subdets = [subdet] if subdet is not None else [s for s in SubDet if s is not SubDet.UNKNOWN]
    layers = [layer] if layer is not None else list(range(MAXLAYERS))

    matrix: list[list[int]] = []
    for eta_bin in range(cabling.etadivisions):
        row: list[int] = []
        for phi_bin in range(cabling.phidivisions):
            region = eta_bin * cabling.phidivisions + phi_bin
            count = 0
            for sd in subdets:
                for ly in layers:
                    element = table[element_index(region, sd, ly)]
                    count += sum(len(conns) for conns in element.values())
            row.append(count)
        matrix.append(row)
    return matrix


def render_occupancy(
    cabling: RegionCabling,
    output_path: str | Path,
    subdet: SubDet | None = None,
    layer: int | None = None,
    colorscale: str = "Viridis",
    open_browser: bool = False,
) -> go.Figure:
    """Render connections per region as an eta-phi heatmap to HTML."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    d_eta, d_phi = cabling.region_dimensions()
    # Cell centres in physical eta.
    eta_centres = [
        cabling.position_of_region(eta_bin * cabling.phidivisions).eta - cabling.etamax
        for eta_bin in range(cabling.etadivisions)
    ]
    phi_centres = [d_phi * phi_bin + d_phi / 2.0 for phi_bin in range(cabling.phidivisions)]
    matrix = occupancy_matrix(cabling, subdet, layer)

    hover = [
        [
            f"region {eta_bin * cabling.phidivisions + phi_bin}<br>"
            f"eta bin {eta_bin}, phi bin {phi_bin}<br>{matrix[eta_bin][phi_bin]} connections"
            for phi_bin in range(cabling.phidivisions)
        ]
        for eta_bin in range(cabling.etadivisions)
    ]

    fig = go.Figure(
        go.Heatmap(
            x=phi_centres,
            y=eta_centres,
            z=matrix,
            colorscale=colorscale,
            colorbar=dict(title="Connections"),
            hoverinfo="text",
            text=hover,
            xgap=1,
            ygap=1,
        )
    )

    selection = "All sub-detectors" if subdet is None else subdet.name
    if layer is not None:
        selection += f", layer {layer}"
    fig.update_layout(
        title=f"Regional Cabling Occupancy - {selection}",
        width=900,
        height=700,
        plot_bgcolor=EMPTY_COLOR,
    )
    fig.update_xaxes(title_text="phi (rad)", range=[0.0, d_phi * cabling.phidivisions])
    fig.update_yaxes(title_text="eta", range=[-cabling.etamax, -cabling.etamax + d_eta * cabling.etadivisions])

    fig.write_html(str(output_path))
    if open_browser:
        import webbrowser

        webbrowser.open(f"file://{output_path.resolve()}")

    return fig
