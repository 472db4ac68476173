"""
Command-line interface for the asset tools.
Provides the full asset pipeline plus each image tool as a standalone command.
"""

import sys
import os
from pathlib import Path
from typing import Optional, List, Tuple
import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .config import PipelineConfig, ENV_PREFIX
from .pipeline import AssetPipeline, AssetClass, Style, PipelineOptions, PipelineResult
from .processing.buffer import PixelBuffer, Rect, ProcessingError
from .processing.cropper import crop as crop_buffer
from .processing.pixelator import pixelate as pixelate_buffer
from .processing.keyer import KeyMode, KeyingConfig, FloodFillKeyer
from .processing.quantizer import quantize as quantize_buffer, sample_palette, extract_palette
from .processing.canvas import resize_to_canvas
from .utils.image import ImageUtils
from .utils.color import parse_color, format_color

# Initialize typer app and rich console
app = typer.Typer(
    name="asset-tools",
    help="Asset tools for the resource-management game - Crop, pixelate, key, recolor and normalize artwork",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]asset-tools process hero.png --class player --style pixelate[/cyan]   Full pipeline
  [cyan]asset-tools pixelate hero.png 32 --key[/cyan]                          Pixel art with magenta removed
  [cyan]asset-tools quantize ore.png --samples 6 --offset 0.1[/cyan]           Recolor to the gradient
  [cyan]asset-tools resize ore.png --class resource[/cyan]                     Pad to the resource canvas

[bold]Environment Variables:[/bold]
  Use [cyan]asset-tools config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()


@app.command()
def process(
    input_path: Path = typer.Argument(..., help="Source image"),
    asset_class: str = typer.Option("player", "--class", "-a", help="Asset class: player, resource, station, goal"),
    style: Optional[str] = typer.Option(None, "--style", "-s", help="Style: none, pixelate, quantize"),
    pixel_width: Optional[int] = typer.Option(None, "--pixel-width", help="Pixelation width in pixels"),
    samples: Optional[int] = typer.Option(None, "--samples", help="Number of gradient colors for quantize"),
    offset: Optional[float] = typer.Option(None, "--offset", help="Brightness offset for quantize"),
    region: Optional[str] = typer.Option(None, "--crop", help="Crop region as x,y,width,height"),
    bottom_left: bool = typer.Option(False, "--bottom-left", help="Crop y is measured from the bottom edge"),
    key: Optional[bool] = typer.Option(None, "--key/--no-key", help="Remove the key color"),
    key_color: Optional[str] = typer.Option(None, "--key-color", help="Color to remove (hex, name or r,g,b)"),
    tolerance: Optional[float] = typer.Option(None, "--tolerance", "-t", help="Key color tolerance"),
    key_mode: Optional[str] = typer.Option(None, "--key-mode", help="Key mode: flood_fill or global"),
    seeds: Optional[List[str]] = typer.Option(None, "--seed", help="Flood fill seed as x,y (repeatable)"),
    background: Optional[str] = typer.Option(None, "--background", "-b", help="Canvas background color"),
    finalize: bool = typer.Option(True, "--finalize/--preview", help="Resize onto the asset class canvas"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Run the full pipeline on one image for an asset class."""
    config = _load_config(config_file)

    try:
        pipeline = AssetPipeline(config)
        source = _load_source(input_path)
        options = _build_options(
            pipeline, source, style, pixel_width, samples, offset, region, bottom_left,
            key, key_color, tolerance, key_mode, seeds, background, finalize
        )
        result = pipeline.run(source, asset_class, options)
    except (ProcessingError, ValueError) as e:
        console.print(f"[red]Processing failed:[/red] {e}")
        raise typer.Exit(1)

    output_path = output or _default_output_path(config, result.asset_class, input_path)
    _save_output(result.buffer, output_path, config)
    _display_result(result)
    console.print(f"[green]✓[/green] Saved {result.asset_class.label} asset to {output_path}")


@app.command()
def batch(
    input_dir: Path = typer.Argument(..., help="Directory of source images"),
    asset_class: str = typer.Option("player", "--class", "-a", help="Asset class: player, resource, station, goal"),
    style: Optional[str] = typer.Option(None, "--style", "-s", help="Style: none, pixelate, quantize"),
    key: Optional[bool] = typer.Option(None, "--key/--no-key", help="Remove the key color"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Output directory"),
    pattern: str = typer.Option("*.png", "--pattern", help="Glob pattern for source files"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Process every matching image in a directory."""
    config = _load_config(config_file)

    if not input_dir.is_dir():
        console.print(f"[red]Input directory not found:[/red] {input_dir}")
        raise typer.Exit(1)

    files = sorted(input_dir.glob(pattern))
    if not files:
        console.print(f"[yellow]No files matching {pattern} in {input_dir}[/yellow]")
        return

    try:
        pipeline = AssetPipeline(config)
        target_class = AssetClass.parse(asset_class)
    except ProcessingError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    processed = 0
    failures: List[Tuple[str, str]] = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task = progress.add_task("Processing images...", total=len(files))

        for path in files:
            progress.update(task, description=f"Processing {path.name}")
            try:
                source = _load_source(path)
                options = _build_options(
                    pipeline, source, style, None, None, None, None, False,
                    key, None, None, None, None, None, True
                )
                result = pipeline.run(source, target_class, options)
            except (ProcessingError, ValueError) as e:
                failures.append((path.name, str(e)))
                progress.advance(task)
                continue

            if output_dir is not None:
                output_path = output_dir / f"{path.stem}.png"
            else:
                output_path = _default_output_path(config, target_class, path)
            _save_output(result.buffer, output_path, config)
            processed += 1
            progress.advance(task)

    console.print(f"[green]✓[/green] Processed {processed} of {len(files)} images")
    if failures:
        console.print(f"[yellow]{len(failures)} images failed:[/yellow]")
        for name, error in failures:
            console.print(f"  • {name}: {error}")
        raise typer.Exit(1)


@app.command()
def crop(
    input_path: Path = typer.Argument(..., help="Source image"),
    x: int = typer.Argument(..., help="Left edge"),
    y: int = typer.Argument(..., help="Top edge (bottom edge with --bottom-left)"),
    width: int = typer.Argument(..., help="Region width"),
    height: int = typer.Argument(..., help="Region height"),
    bottom_left: bool = typer.Option(False, "--bottom-left", help="Measure y from the bottom edge"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """Crop a region out of an image."""
    try:
        source = _load_source(input_path)
        if bottom_left:
            region = Rect.from_bottom_left(x, y, width, height, source.height)
        else:
            region = Rect(x, y, width, height)
        result = crop_buffer(source, region)
    except (ProcessingError, ValueError) as e:
        console.print(f"[red]Crop failed:[/red] {e}")
        raise typer.Exit(1)

    _finish_tool(result, output, input_path, "cropped")


@app.command()
def pixelate(
    input_path: Path = typer.Argument(..., help="Source image"),
    width: int = typer.Argument(..., help="Pixel art width in pixels"),
    key: bool = typer.Option(False, "--key", help="Remove the key color after pixelating"),
    key_color: str = typer.Option("magenta", "--key-color", help="Color to remove"),
    tolerance: float = typer.Option(0.1, "--tolerance", "-t", help="Key color tolerance"),
    all_corners: bool = typer.Option(True, "--all-corners/--top-left", help="Flood fill from every corner"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """Convert an image to pixel art by nearest-neighbor downsampling."""
    try:
        result = pixelate_buffer(_load_source(input_path), width)
        if key:
            keyer = FloodFillKeyer(KeyingConfig(
                target_color=parse_color(key_color),
                tolerance=tolerance,
                all_corners=all_corners,
            ))
            result = keyer.key_out(result)
    except (ProcessingError, ValueError) as e:
        console.print(f"[red]Pixelation failed:[/red] {e}")
        raise typer.Exit(1)

    _finish_tool(result, output, input_path, "pixelated")


@app.command()
def key(
    input_path: Path = typer.Argument(..., help="Source image"),
    color: str = typer.Option("magenta", "--color", help="Color to remove (hex, name or r,g,b)"),
    tolerance: float = typer.Option(0.1, "--tolerance", "-t", help="Maximum RGB distance that counts as a match"),
    mode: str = typer.Option("flood_fill", "--mode", "-m", help="flood_fill or global"),
    seeds: Optional[List[str]] = typer.Option(None, "--seed", help="Flood fill seed as x,y (repeatable)"),
    all_corners: bool = typer.Option(True, "--all-corners/--top-left", help="Default seeds when none are given"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """Make a background color transparent."""
    try:
        keyer = FloodFillKeyer(KeyingConfig(
            target_color=parse_color(color),
            tolerance=tolerance,
            mode=KeyMode.parse(mode),
            seeds=[_parse_seed(s) for s in seeds] if seeds else None,
            all_corners=all_corners,
        ))
        result = keyer.key_out(_load_source(input_path))
    except (ProcessingError, ValueError) as e:
        console.print(f"[red]Keying failed:[/red] {e}")
        raise typer.Exit(1)

    _finish_tool(result, output, input_path, "keyed")


@app.command()
def quantize(
    input_path: Path = typer.Argument(..., help="Source image"),
    samples: Optional[int] = typer.Option(None, "--samples", "-n", help="Number of gradient colors"),
    offset: Optional[float] = typer.Option(None, "--offset", help="Brightness offset"),
    gradient: Optional[List[str]] = typer.Option(None, "--stop", help="Gradient stop color (repeatable, in order)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Recolor an image to colors sampled from a gradient by brightness."""
    config = _load_config(config_file)

    try:
        stops = [parse_color(s) for s in gradient] if gradient else config.gradient
        result = quantize_buffer(
            _load_source(input_path),
            stops,
            samples if samples is not None else config.quantize_sample_count,
            offset if offset is not None else config.quantize_brightness_offset,
        )
    except (ProcessingError, ValueError) as e:
        console.print(f"[red]Quantization failed:[/red] {e}")
        raise typer.Exit(1)

    _finish_tool(result, output, input_path, "resampled")


@app.command()
def resize(
    input_path: Path = typer.Argument(..., help="Source image"),
    asset_class: Optional[str] = typer.Option(None, "--class", "-a", help="Use the canvas size of an asset class"),
    width: Optional[int] = typer.Option(None, "--width", help="Canvas width"),
    height: Optional[int] = typer.Option(None, "--height", help="Canvas height"),
    background: Optional[str] = typer.Option(None, "--background", "-b", help="Padding color"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Fit an image onto an opaque canvas, keeping its aspect ratio."""
    config = _load_config(config_file)

    try:
        if asset_class is not None:
            canvas_width, canvas_height = config.canvas_size(AssetClass.parse(asset_class).value)
        elif width is not None and height is not None:
            canvas_width, canvas_height = width, height
        else:
            console.print("[red]Error:[/red] give --class or both --width and --height")
            raise typer.Exit(1)

        fill = parse_color(background) if background else config.background_color
        result = resize_to_canvas(_load_source(input_path), canvas_width, canvas_height, fill)
    except (ProcessingError, ValueError) as e:
        console.print(f"[red]Resize failed:[/red] {e}")
        raise typer.Exit(1)

    _finish_tool(result, output, input_path, "resized")


@app.command()
def palette(
    input_path: Optional[Path] = typer.Argument(None, help="Image to extract a palette from"),
    count: int = typer.Option(5, "--count", "-n", help="Number of colors to extract"),
    samples: Optional[int] = typer.Option(None, "--samples", help="Show this many sampled gradient colors"),
    strip: Optional[Path] = typer.Option(None, "--strip", help="Write a gradient strip PNG"),
    swatch: Optional[Path] = typer.Option(None, "--swatch", help="Write a swatch PNG of the listed colors"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Show the gradient palette, or extract one from an image."""
    config = _load_config(config_file)

    try:
        if input_path is not None:
            colors = extract_palette(_load_source(input_path), count)
            title = f"Palette extracted from {input_path.name}"
            stops = colors
        else:
            stops = config.gradient
            sample_count = samples if samples is not None else config.quantize_sample_count
            colors = [tuple(c) for c in sample_palette(stops, sample_count)]
            title = f"{sample_count} colors sampled from gradient"
    except (ProcessingError, ValueError) as e:
        console.print(f"[red]Palette failed:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Hex", style="cyan")
    table.add_column("Swatch")
    for i, color in enumerate(colors):
        hex_code = format_color(color[:3])
        table.add_row(str(i), hex_code, f"[on {hex_code}]      [/]")
    console.print(table)

    if strip is not None:
        ImageUtils.save_image(ImageUtils.gradient_preview(stops), strip)
        console.print(f"[green]✓[/green] Gradient strip saved to {strip}")
    if swatch is not None:
        ImageUtils.save_image(ImageUtils.palette_swatch(colors), swatch)
        console.print(f"[green]✓[/green] Swatch saved to {swatch}")


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage tool configuration."""
    if env_vars:
        _display_env_vars()
        return

    if show or validate_config:
        config = _load_config(config_file)

        if show:
            _display_config(config)

        if validate_config:
            errors = config.validate()
            if errors:
                console.print("[red]Configuration validation errors:[/red]")
                for error in errors:
                    console.print(f"  • {error}")
                raise typer.Exit(1)
            else:
                console.print("[green]✓ Configuration is valid[/green]")
    else:
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")


@app.command()
def version():
    """Show asset tools version information."""
    console.print("[bold]Asset Tools for the resource-management game[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    import PIL
    import numpy
    from importlib.metadata import version as package_version

    table = Table(show_header=False)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("Pillow", PIL.__version__)
    table.add_row("NumPy", numpy.__version__)
    table.add_row("Typer", typer.__version__)
    table.add_row("Rich", package_version("rich"))

    console.print("\n[bold]Dependencies:[/bold]")
    console.print(table)


def _build_options(pipeline: AssetPipeline, source: PixelBuffer,
                   style: Optional[str], pixel_width: Optional[int],
                   samples: Optional[int], offset: Optional[float],
                   region: Optional[str], bottom_left: bool,
                   key: Optional[bool], key_color: Optional[str],
                   tolerance: Optional[float], key_mode: Optional[str],
                   seeds: Optional[List[str]], background: Optional[str],
                   finalize: bool) -> PipelineOptions:
    """Merge command-line overrides into the configured pipeline options."""
    options = pipeline.default_options(finalize=finalize)

    if style is not None:
        options.style = Style.parse(style)
    if pixel_width is not None:
        options.pixelate_width = pixel_width
    if samples is not None:
        options.quantize.sample_count = samples
    if offset is not None:
        options.quantize.brightness_offset = offset

    if region is not None:
        x, y, width, height = _parse_ints(region, 4, "crop region")
        if bottom_left:
            options.crop = Rect.from_bottom_left(x, y, width, height, source.height)
        else:
            options.crop = Rect(x, y, width, height)

    if key is True and options.keying is None:
        options.keying = KeyingConfig(
            target_color=pipeline.config.key_color,
            tolerance=pipeline.config.key_tolerance,
            mode=KeyMode.parse(pipeline.config.key_mode),
            all_corners=pipeline.config.key_all_corners,
        )
    elif key is False:
        options.keying = None

    if options.keying is not None:
        if key_color is not None:
            options.keying.target_color = parse_color(key_color)
        if tolerance is not None:
            options.keying.tolerance = tolerance
        if key_mode is not None:
            options.keying.mode = KeyMode.parse(key_mode)
        if seeds:
            options.keying.seeds = [_parse_seed(s) for s in seeds]

    if background is not None:
        options.background = parse_color(background)

    return options


def _parse_ints(text: str, count: int, what: str) -> List[int]:
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != count:
        raise ValueError(f"Invalid {what} '{text}': expected {count} comma-separated integers")
    try:
        return [int(p) for p in parts]
    except ValueError:
        raise ValueError(f"Invalid {what} '{text}': expected {count} comma-separated integers")


def _parse_seed(text: str) -> Tuple[int, int]:
    x, y = _parse_ints(text, 2, "seed")
    return (x, y)


def _load_source(path: Path) -> PixelBuffer:
    if not path.exists():
        raise ValueError(f"Input file not found: {path}")
    return ImageUtils.load_buffer(path)


def _default_output_path(config: PipelineConfig, asset_class: AssetClass, input_path: Path) -> Path:
    """Output lands in a sub-folder named after the asset class."""
    return Path(config.output_dir) / asset_class.label / f"{input_path.stem}.png"


def _save_output(buffer: PixelBuffer, path: Path, config: PipelineConfig) -> None:
    ImageUtils.save_buffer(buffer, path, compress_level=config.compression_level)


def _finish_tool(result: PixelBuffer, output: Optional[Path], input_path: Path, suffix: str) -> None:
    """Save a single-tool result, defaulting to ``<stem>_<suffix>.png`` next to the input."""
    output_path = output or input_path.with_name(f"{input_path.stem}_{suffix}.png")
    ImageUtils.save_buffer(result, output_path)
    console.print(f"[green]✓[/green] Saved {result.width}x{result.height} image to {output_path}")


def _load_config(config_file: Optional[Path]) -> PipelineConfig:
    """Load configuration from file or use defaults with environment variable support."""
    config = None

    try:
        if config_file:
            if not config_file.exists():
                console.print(f"[red]Configuration file not found:[/red] {config_file}")
                raise typer.Exit(1)
            config = PipelineConfig.from_file(config_file)
            console.print(f"[dim]Using configuration: {config_file}[/dim]")
        else:
            # Try to find default config files
            default_configs = [
                Path("asset_tools.toml"),
                Path("asset_tools.json"),
                Path("scripts/asset_tools.toml"),
                Path("scripts/asset_tools.json")
            ]

            for config_path in default_configs:
                if config_path.exists():
                    console.print(f"[dim]Using configuration: {config_path}[/dim]")
                    config = PipelineConfig.from_file(config_path)
                    break

            if config is None:
                config = PipelineConfig()

        # Apply environment variable overrides
        config = PipelineConfig._apply_env_overrides(config)
    except (ValueError, KeyError, TypeError, ImportError) as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)

    env_vars_used = [key for key in os.environ if key.startswith(ENV_PREFIX)]
    if env_vars_used:
        console.print(f"[dim]Environment overrides applied: {len(env_vars_used)} variables[/dim]")

    return config


def _display_result(result: PipelineResult) -> None:
    """Display per-step timings of a pipeline run."""
    table = Table(title=f"{result.asset_class.label} asset")
    table.add_column("Step", style="cyan")
    table.add_column("Duration", style="yellow")
    table.add_column("Size", style="green")

    for step in result.steps:
        table.add_row(step.step.value, f"{step.duration:.3f}s", step.message)

    console.print(table)


def _display_config(config: PipelineConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Asset Tools Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    # Canvas settings
    for name, (width, height) in config.canvas_sizes.items():
        table.add_row(f"{name.capitalize()} Canvas", f"{width}×{height}")
    table.add_row("Background", format_color(config.background_color))

    # Style settings
    table.add_row("Default Style", config.default_style)
    table.add_row("Pixelate Width", str(config.pixelate_width))
    table.add_row("Quantize Samples", str(config.quantize_sample_count))
    table.add_row("Brightness Offset", str(config.quantize_brightness_offset))
    table.add_row("Gradient", " ".join(format_color(stop) for stop in config.gradient))

    # Keying settings
    table.add_row("Keying Enabled", str(config.key_enabled))
    table.add_row("Key Color", format_color(config.key_color))
    table.add_row("Key Tolerance", str(config.key_tolerance))
    table.add_row("Key Mode", config.key_mode)
    table.add_row("Key All Corners", str(config.key_all_corners))

    # Output settings
    table.add_row("Output Directory", config.output_dir)
    table.add_row("Compression Level", str(config.compression_level))
    table.add_row("Log Level", config.log_level)

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Asset Tools Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    env_vars = [
        (f"{ENV_PREFIX}PLAYER_SIZE", "Player canvas size", "512x512"),
        (f"{ENV_PREFIX}RESOURCE_SIZE", "Resource canvas size", "256x256"),
        (f"{ENV_PREFIX}STATION_SIZE", "Station canvas size", "1024x1024"),
        (f"{ENV_PREFIX}GOAL_SIZE", "Goal canvas size", "256x256"),
        (f"{ENV_PREFIX}BACKGROUND", "Canvas background color", "#ffffff"),
        (f"{ENV_PREFIX}STYLE", "Default style (none/pixelate/quantize)", "pixelate"),
        (f"{ENV_PREFIX}PIXELATE_WIDTH", "Pixel art width in pixels", "32"),
        (f"{ENV_PREFIX}SAMPLE_COUNT", "Quantize color count", "8"),
        (f"{ENV_PREFIX}BRIGHTNESS_OFFSET", "Quantize brightness offset", "0.1"),
        (f"{ENV_PREFIX}KEY_ENABLED", "Remove key color (true/false)", "true"),
        (f"{ENV_PREFIX}KEY_COLOR", "Key color", "magenta"),
        (f"{ENV_PREFIX}KEY_TOLERANCE", "Key color tolerance", "0.1"),
        (f"{ENV_PREFIX}KEY_MODE", "Key mode (flood_fill/global)", "flood_fill"),
        (f"{ENV_PREFIX}KEY_ALL_CORNERS", "Seed flood fill from all corners (true/false)", "true"),
        (f"{ENV_PREFIX}OUTPUT_DIR", "Output directory", "Assets/Asset Tools Outputs"),
        (f"{ENV_PREFIX}COMPRESSION_LEVEL", "PNG compression level (0-9)", "6"),
        (f"{ENV_PREFIX}LOG_LEVEL", "Log level", "INFO"),
    ]

    for var_name, description, example in env_vars:
        table.add_row(var_name, description, example)

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")
    console.print(f"[dim]Example: export {ENV_PREFIX}STYLE=pixelate[/dim]")


if __name__ == "__main__":
    app()
