"""Command-line interface for the tile mosaic builder."""

import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from .config import AppConfig, get_config
from .errors import TileMosaicError
from .models.query import GeoQuery

console = Console()


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("tilemosaic")
    package_logger.handlers = [RichHandler(console=console, show_path=False)]
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def query_options(func):
    """Options shared by every command that describes a query."""
    options = [
        click.option("--query", "-q", "query_file", type=click.Path(exists=True), help="Query YAML file"),
        click.option("--lat", type=float, help="Center latitude"),
        click.option("--lon", type=float, help="Center longitude"),
        click.option("--zoom", "-z", type=int, help="Tile zoom level"),
        click.option("--width", type=float, help="Footprint width in meters"),
        click.option("--height", type=float, help="Footprint height in meters"),
        click.option("--tile-server", help="Tile URI template with {x}, {y}, {z}"),
        click.option("--root", type=click.Path(), help="Root directory for cache and materials"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_query(
    query_file: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    zoom: Optional[int],
    width: Optional[float],
    height: Optional[float],
    tile_server: Optional[str],
    **overrides,
) -> GeoQuery:
    """Build a query from a YAML file and/or command-line options.

    Command-line values take precedence over the file.
    """
    data = {}
    if query_file:
        data = GeoQuery.from_yaml(Path(query_file)).model_dump(exclude_none=True)

    cli_values = {
        "latitude": lat,
        "longitude": lon,
        "zoom": zoom,
        "width": width,
        "height": height,
        "tile_server": tile_server or (None if query_file else get_config().tile_server),
        **overrides,
    }
    data.update({key: value for key, value in cli_values.items() if value is not None})

    missing = [key for key in ("latitude", "longitude", "zoom", "width", "height") if key not in data]
    if missing:
        raise click.UsageError(f"Missing query parameters: {', '.join(missing)}")

    return GeoQuery(**data)


def _command_config(root: Optional[str], **overrides) -> AppConfig:
    """Copy of the global config with this command's options applied."""
    updates = {key: value for key, value in overrides.items() if value is not None}
    if root:
        updates["root_dir"] = Path(root)
    return get_config().model_copy(update=updates)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool):
    """Tile Mosaic - build georeferenced ground textures from map tiles."""
    _configure_logging(verbose)


@main.command()
@query_options
@click.option("--name", "-n", help="Model name")
@click.option("--quality", type=click.IntRange(1, 100), help="JPEG quality of the mosaic")
@click.option("--shift-x", type=float, help="Origin shift as a fraction of width")
@click.option("--shift-y", type=float, help="Origin shift as a fraction of height")
@click.option("--workers", "-w", type=click.IntRange(1, 16), help="Concurrent tile downloads")
@click.option("--force", is_flag=True, help="Regenerate even if the mosaic exists")
def build(
    query_file: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    zoom: Optional[int],
    width: Optional[float],
    height: Optional[float],
    tile_server: Optional[str],
    root: Optional[str],
    name: Optional[str],
    quality: Optional[int],
    shift_x: Optional[float],
    shift_y: Optional[float],
    workers: Optional[int],
    force: bool,
):
    """Download tiles and stitch them into a mosaic with its material script."""
    from .services.model_service import ModelCreator

    config = _command_config(root, max_workers=workers)
    if quality is None and not query_file:
        quality = config.jpeg_quality

    try:
        query = _load_query(
            query_file, lat, lon, zoom, width, height, tile_server,
            name=name, quality=quality, shift_x=shift_x, shift_y=shift_y,
        )
        creator = ModelCreator(query, config)
    except (TileMosaicError, ValidationError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    cols, rows = creator.loader.num_tiles()
    console.print(f"[bold]Center:[/bold] ({query.latitude:.6f}, {query.longitude:.6f}) at zoom {query.zoom}")
    console.print(f"[bold]Tile grid:[/bold] {cols} x {rows} = {cols * rows} tiles")

    with creator, Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Building mosaic...", total=None)

        def on_tile(done: int, total: int) -> None:
            progress.update(task, completed=done, total=total, description="Downloading tiles...")

        try:
            mosaic = creator.create(force=force, progress_callback=on_tile)
        except TileMosaicError as exc:
            progress.update(task, description=f"[red]Failed: {exc}[/red]")
            console.print(f"[red]Error:[/red] {exc}")
            raise SystemExit(1)

        progress.update(task, completed=1, total=1, description="[green]Mosaic ready")

    origin_lat, origin_lon = creator.origin_lat_lon()

    table = Table(title=f"Mosaic: {query.name}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Identity", mosaic.identity)
    table.add_row("Tiles loaded", f"{mosaic.tiles_loaded} / {cols * rows}")
    table.add_row("Resolution", f"{mosaic.resolution:.6f} m/px")
    table.add_row("Origin offset", f"{mosaic.grid.offset_x:.4f}, {mosaic.grid.offset_y:.4f}")
    table.add_row("Size", f"{mosaic.size_meters[0]:.1f} x {mosaic.size_meters[1]:.1f} m")
    table.add_row("Origin", f"{origin_lat:.6f}, {origin_lon:.6f}")
    console.print(table)

    console.print(f"[green]Saved:[/green] {mosaic.image_path}")
    console.print(f"[green]Material:[/green] {mosaic.material_path}")


@main.command()
@query_options
def info(
    query_file: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    zoom: Optional[int],
    width: Optional[float],
    height: Optional[float],
    tile_server: Optional[str],
    root: Optional[str],
):
    """Show the tile grid for a query without downloading anything."""
    from .services.tile_loader import TileLoader

    config = _command_config(root)

    try:
        query = _load_query(query_file, lat, lon, zoom, width, height, tile_server)
        loader = TileLoader.from_query(query, config.cache_dir)
    except (TileMosaicError, ValidationError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    cols, rows = loader.num_tiles()
    min_x, max_x, min_y, max_y = loader.tile_range()

    table = Table(title="Tile query")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Center tile", f"{loader.center_tile_x}, {loader.center_tile_y}")
    table.add_row("Origin offset", f"{loader.origin_offset_x:.4f}, {loader.origin_offset_y:.4f}")
    table.add_row("Resolution", f"{loader.resolution:.6f} m/px")
    table.add_row("Tile grid", f"{cols} x {rows} = {cols * rows} tiles")
    table.add_row("Tile range", f"x {min_x}-{max_x}, y {min_y}-{max_y}")
    table.add_row("To download", str(loader.num_tiles_to_download()))
    table.add_row("Identity", loader.identity())
    table.add_row("Cache", str(loader.cache_path))
    console.print(table)


@main.command()
@click.argument("output", type=click.Path())
@click.option("--lat", type=float, required=True, help="Center latitude")
@click.option("--lon", type=float, required=True, help="Center longitude")
@click.option("--zoom", "-z", type=int, default=19, help="Tile zoom level")
@click.option("--width", type=float, default=300.0, help="Footprint width in meters")
@click.option("--height", type=float, default=300.0, help="Footprint height in meters")
@click.option("--tile-server", help="Tile URI template with {x}, {y}, {z}")
@click.option("--name", "-n", default="satellite_map", help="Model name")
def init(
    output: str,
    lat: float,
    lon: float,
    zoom: int,
    width: float,
    height: float,
    tile_server: Optional[str],
    name: str,
):
    """Write a query YAML file."""
    try:
        query = GeoQuery(
            tile_server=tile_server or get_config().tile_server,
            latitude=lat,
            longitude=lon,
            zoom=zoom,
            width=width,
            height=height,
            name=name,
        )
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    query.to_yaml(output_path)

    console.print(f"[green]Created query:[/green] {output_path}")
    console.print(f"[dim]Build it with:[/dim] tilemosaic build --query {output_path}")


if __name__ == "__main__":
    main()
