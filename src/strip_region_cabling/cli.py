"""Rich-Click CLI for strip_region_cabling."""

from __future__ import annotations

from pathlib import Path

import rich_click as click

click.rich_click.USE_RICH_MARKUP = True

SUBDET_CHOICES = ["TIB", "TOB", "TID", "TEC"]


def _parse_floats(value: str, count: int, option: str) -> tuple[float, ...]:
    try:
        parts = tuple(float(x) for x in value.split(","))
    except ValueError:
        raise click.BadParameter(f"{option} must be {count} comma-separated numbers") from None
    if len(parts) != count:
        raise click.BadParameter(f"{option} must be {count} comma-separated numbers")
    return parts


@click.group()
def app() -> None:
    """Regional view of the strip-tracker cabling."""


@app.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path),
    default=Path("output"),
    show_default=True,
    help="Output directory for generated files.",
)
@click.option("--report/--no-report", default=True, show_default=True, help="Generate and print an ASCII summary report.")
@click.option("--viz/--no-viz", default=True, show_default=True, help="Generate the eta-phi occupancy HTML map.")
@click.option("--subdet", type=click.Choice(SUBDET_CHOICES), default=None, help="Restrict the map to one sub-detector.")
@click.option("--layer", type=click.IntRange(0, 9), default=None, help="Restrict the map to one layer.")
@click.option("--open-browser", is_flag=True, default=False, show_default="False", help="Auto-open HTML after generation.")
def report(
    config_file: Path,
    output_dir: Path,
    report: bool,
    viz: bool,
    subdet: str | None,
    layer: int | None,
    open_browser: bool,
) -> None:
    """Build the regional cabling from CONFIG_FILE and summarise it."""
    from strip_region_cabling.config import load_config
    from strip_region_cabling.geometry import SubDet

    click.echo(f"Loading config: {config_file}")
    config = load_config(config_file)

    click.echo(f"Building regional cabling from {config.catalog.file}...")
    cabling, summary = config.build()
    click.echo(
        f"Placed {summary.units_placed} detector units "
        f"({summary.connections_placed} connections), skipped {summary.units_skipped}"
    )
    output_dir.mkdir(parents=True, exist_ok=True)

    if report:
        from strip_region_cabling.reporter import generate_report

        summary_text = generate_report(cabling, config, summary)
        click.echo(summary_text)
        summary_path = output_dir / "region_cabling_summary.txt"
        summary_path.write_text(summary_text + "\n")
        click.echo(f"Writing summary report: {summary_path}")

    if viz:
        from strip_region_cabling.visualize import render_occupancy

        viz_path = output_dir / "region_cabling_occupancy.html"
        click.echo(f"Rendering occupancy map: {viz_path}")
        render_occupancy(
            cabling,
            viz_path,
            subdet=SubDet[subdet] if subdet else None,
            layer=layer,
            colorscale=config.visualizer.colorscale,
            open_browser=open_browser,
        )

    click.echo("Done!")


@app.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.option("--eta", type=float, required=True, help="Physical pseudorapidity of the window centre.")
@click.option("--phi", type=float, required=True, help="Azimuth of the window centre (rad).")
@click.option("--window", type=str, default=None, show_default="None", help="Rectangular half-widths: DETA,DPHI")
@click.option("--cone", type=float, default=None, show_default="None", help="Cone radius dR.")
@click.option("--subdet", type=click.Choice(SUBDET_CHOICES), required=True, help="Sub-detector to select.")
@click.option("--layer", type=click.IntRange(0, 9), required=True, help="Layer to select.")
def select(
    config_file: Path,
    eta: float,
    phi: float,
    window: str | None,
    cone: float | None,
    subdet: str,
    layer: int,
) -> None:
    """List the elements around (ETA, PHI) that a regional unpacker would request."""
    from strip_region_cabling.config import load_config
    from strip_region_cabling.geometry import SubDet
    from strip_region_cabling.selector import ElementRequests, select_cone, select_window

    if (window is None) == (cone is None):
        raise click.BadParameter("give exactly one of --window or --cone")
    if cone is not None and cone < 0:
        raise click.BadParameter("--cone must be >= 0")
    if window is not None:
        delta_eta, delta_phi = _parse_floats(window, 2, "--window")
        if delta_eta < 0 or delta_phi < 0:
            raise click.BadParameter("--window half-widths must be >= 0")

    config = load_config(config_file)
    cabling, _ = config.build()
    position = cabling.position_from_detector(eta, phi)

    requests = ElementRequests()
    if cone is not None:
        select_cone(cabling, requests, position, cone, SubDet[subdet], layer)
    else:
        select_window(cabling, requests, position, delta_eta, delta_phi, SubDet[subdet], layer)

    click.echo(f"Requested {len(requests)} elements")
    for index, element in requests.resolve(cabling.get_region_cabling()):
        region = cabling.region_of_element(index)
        cell = cabling.position_index(region)
        n_connections = sum(len(conns) for conns in element.values())
        click.echo(
            f"  element {index}: region {region} (eta bin {cell.eta}, phi bin {cell.phi}), "
            f"{len(element)} units, {n_connections} connections"
        )
