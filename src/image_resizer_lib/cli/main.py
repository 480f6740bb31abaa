"""CLI entry point — click group exposing the resizer as a sub-command."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from image_resizer_lib.core.config import ConfigManager
from image_resizer_lib.core.exceptions import ResizerError
from image_resizer_lib.tools.image_resizer.codec import RESAMPLE_FILTERS


@click.group()
@click.version_option(package_name="image-resizer-lib")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, resolve_path=True),
    default=None,
    help="Configuration directory (default: ~/.config/image-resizer-lib).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, config_dir: str | None, verbose: bool) -> None:
    """Image Resizer — resize one image into a cache or output directory."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    config = ConfigManager(config_dir=Path(config_dir) if config_dir else None)
    config.load()
    ctx.obj = config


@cli.command(name="resize")
@click.argument("source")
@click.option("-W", "--width", type=int, default=0, show_default=True, help="Target width; 0 keeps the source size.")
@click.option("-H", "--height", type=int, default=0, show_default=True, help="Target height; 0 keeps the source size.")
@click.option("-f", "--format", "fmt", default=None, help="Output format (png, jpeg, webp, ...).")
@click.option("-q", "--quality", type=click.IntRange(0, 100), default=None, help="Quality 0-100.")
@click.option("-m", "--mode", default=None, help="Fit mode: stretch, contain or cover.")
@click.option("--only-scale-down", is_flag=True, default=False, help="Never enlarge the image.")
@click.option("-r", "--rotation", type=int, default=0, show_default=True, help="Clockwise rotation in degrees.")
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, resolve_path=True),
    default=None,
    help="Copy the result into this directory.",
)
@click.option("--keep-meta", is_flag=True, default=False, help="Copy EXIF tags and ICC profile from the source.")
@click.option(
    "--resample",
    default="lanczos",
    show_default=True,
    type=click.Choice(sorted(RESAMPLE_FILTERS)),
    help="Resampling filter.",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, resolve_path=True),
    default=None,
    help="Cache directory for intermediate files (overrides config).",
)
@click.option("--base64/--no-base64", "show_base64", default=False, help="Include the base64 payload in the output.")
@click.pass_obj
def resize_cmd(
    config: ConfigManager,
    source: str,
    width: int,
    height: int,
    fmt: str | None,
    quality: int | None,
    mode: str | None,
    only_scale_down: bool,
    rotation: int,
    output_dir: str | None,
    keep_meta: bool,
    resample: str,
    cache_dir: str | None,
    show_base64: bool,
) -> None:
    """Resize SOURCE (a path or file:// URI) and print the result as JSON.

    Stages that failed without aborting the resize are reported on stderr.
    """
    from image_resizer_lib.core.events import EventBus
    from image_resizer_lib.tools.image_resizer import ImageResizerTool

    bus = EventBus()
    bus.subscribe(
        "stage_failed",
        lambda **kw: click.echo(f"warning: {kw['stage']} stage failed: {kw['message']}", err=True),
    )

    tool = ImageResizerTool(
        cache_dir=Path(cache_dir) if cache_dir else None,
        config=config,
        event_bus=bus,
    )
    try:
        outcome = tool.run(
            params={
                "source": source,
                "width": width,
                "height": height,
                "format": fmt,
                "quality": quality,
                "mode": mode,
                "only_scale_down": only_scale_down,
                "rotation": rotation,
                "output_dir": Path(output_dir) if output_dir else None,
                "keep_meta": keep_meta,
                "resample": resample,
            },
        )
    except (ResizerError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc

    payload = outcome.record.to_dict()
    if not show_base64:
        payload.pop("base64")
    click.echo(json.dumps(payload, indent=2))
