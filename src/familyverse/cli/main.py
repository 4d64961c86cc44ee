"""
Command Line Interface for the FamilyVerse widget synchronizer.

Lets you inspect what the home-screen widget would show for a given
preferences file, and simulate the companion app's writes into that file.
"""

import base64
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from PIL import Image
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from familyverse import __version__
from familyverse.config import AppConfig, ClockConfig, load_config
from familyverse.core.resolver import ViewModelResolver
from familyverse.errors import FamilyVerseError
from familyverse.host import CompanionBridge, WidgetHost
from familyverse.output import ConsoleRenderer, build_slots, save_cover
from familyverse.store import PreferenceStore
from familyverse.utils.logging import setup_logging

logger = logging.getLogger(__name__)

console = Console()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print()
    console.print(Panel(text, style="bold blue", expand=False))
    console.print()


def print_success(text: str) -> None:
    """Print green success message."""
    console.print(f"[bold green]✓[/bold green] {text}")


def print_warning(text: str) -> None:
    """Print yellow warning message."""
    console.print(f"[bold yellow]⚠[/bold yellow] {text}")


def print_error(text: str) -> None:
    """Print red error message."""
    console.print(f"[bold red]✗[/bold red] {text}")


def parse_now(ctx, param, value: Optional[str]) -> Optional[datetime]:
    """Click callback turning an ISO-8601 string into a datetime."""
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"not an ISO-8601 datetime: {value}")


def effective_config(ctx: click.Context, tz: Optional[str]) -> AppConfig:
    """Return the loaded config, with ``--tz`` applied if given."""
    config: AppConfig = ctx.obj["config"]
    if tz is None:
        return config
    try:
        clock = ClockConfig(timezone=tz)
    except ValidationError:
        raise click.BadParameter(f"unknown time zone: {tz}", param_hint="--tz")
    return config.model_copy(update={"clock": clock})


def resolve_store_path(config: AppConfig, prefs_file: Optional[Path]) -> Path:
    """Pick the preferences file from the argument or the config."""
    path = prefs_file or config.store_path
    if path is None:
        raise click.UsageError("No preferences file given and no store_path configured.")
    return path


def load_store(path: Path, must_exist: bool = True) -> PreferenceStore:
    """Load a store, or start an empty one bound to ``path``."""
    if not path.exists() and not must_exist:
        return PreferenceStore(path=path)
    return PreferenceStore.load(path)


def image_envelope(image_file: Path) -> str:
    """Encode an image file the way the companion app stores covers."""
    with Image.open(image_file) as img:
        image_format = (img.format or "png").lower()
    payload = base64.b64encode(image_file.read_bytes()).decode("ascii")
    return f"data:image/{image_format};base64,{payload}"


# =============================================================================
# MAIN CLI GROUP
# =============================================================================


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Custom config file")
@click.pass_context
def familyverse(ctx, verbose, debug, config_path):
    """
    FamilyVerse widget - preview and drive the home-screen widget state.

    Reads the preferences the companion app writes and shows what the
    widget renders from them.
    """
    config = load_config(config_path)

    if debug or config.debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = config.logging.level
    setup_logging(level=level, log_file=config.logging.file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["debug"] = debug


# =============================================================================
# SHOW / SLOTS COMMANDS
# =============================================================================


@familyverse.command()
@click.argument("prefs_file", required=False, type=click.Path(path_type=Path))
@click.option("--now", callback=parse_now, help="Resolve as of this ISO-8601 time")
@click.option("--tz", help="Time zone that defines 'today' (IANA name)")
@click.option("--instances", type=click.IntRange(min=1), default=1, show_default=True,
              help="Number of widget instances to paint")
@click.option("--save-cover", "cover_target", type=click.Path(path_type=Path),
              help="Write the decoded cover image here")
@click.pass_context
def show(ctx, prefs_file, now, tz, instances, cover_target):
    """
    Render the widget for a preferences file.

    Example:
        familyverse show FlutterSharedPreferences.xml --now 2024-03-05T12:00
    """
    config = effective_config(ctx, tz)
    path = resolve_store_path(config, prefs_file)

    try:
        store = load_store(path)
    except FamilyVerseError as e:
        print_error(str(e))
        sys.exit(1)

    resolver = ViewModelResolver.from_config(config)
    host = WidgetHost(
        store.snapshot,
        resolver,
        display=config.display,
        clock=(lambda: now) if now is not None else None,
    )
    renderer = ConsoleRenderer(console)
    for instance_id in range(1, instances + 1):
        host.register(instance_id, renderer)

    result = host.refresh()

    for name, reason in sorted(result.model.fallbacks.items()):
        print_warning(f"{name}: using default ({reason.value})")

    if cover_target is not None:
        try:
            saved = save_cover(result.slots, cover_target)
        except (ValueError, OSError) as e:
            print_error(f"Could not save cover to {cover_target}: {e}")
            sys.exit(1)
        if saved:
            print_success(f"Cover saved to {cover_target}")
        else:
            print_warning("No decoded cover to save; the widget shows the placeholder")

    if not result.ok:
        sys.exit(1)


@familyverse.command()
@click.argument("prefs_file", required=False, type=click.Path(path_type=Path))
@click.option("--now", callback=parse_now, help="Resolve as of this ISO-8601 time")
@click.option("--tz", help="Time zone that defines 'today' (IANA name)")
@click.pass_context
def slots(ctx, prefs_file, now, tz):
    """
    Print the resolved model and slot texts as JSON.
    """
    config = effective_config(ctx, tz)
    path = resolve_store_path(config, prefs_file)

    try:
        store = load_store(path)
    except FamilyVerseError as e:
        print_error(str(e))
        sys.exit(1)

    resolver = ViewModelResolver.from_config(config)
    model = resolver.resolve(store.snapshot(), now or datetime.now(resolver.tz))
    widget = build_slots(model, config.display)

    payload = {
        "model": model.to_summary(),
        "slots": {
            "image": "cover" if widget.image is not None else widget.placeholder_image,
            "title": widget.title,
            "author_date": widget.author_date,
            "likes": widget.likes,
            "status": widget.status,
            "nearby": widget.nearby,
        },
    }
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


# =============================================================================
# RECORD COMMANDS (companion app writes)
# =============================================================================


@familyverse.group()
def record():
    """Apply a companion app write to a preferences file."""


def _apply(ctx, prefs_file: Optional[Path], method: str, arguments: dict, at: Optional[datetime]) -> None:
    config: AppConfig = ctx.obj["config"]
    path = resolve_store_path(config, prefs_file)
    try:
        store = load_store(path, must_exist=False)
        bridge = CompanionBridge(store, clock=(lambda: at) if at is not None else None)
        bridge.handle(method, arguments)
        store.save(path)
    except (FamilyVerseError, OSError, ValueError, TypeError) as e:
        print_error(f"{method} failed: {e}")
        if ctx.obj.get("debug"):
            logger.exception("Record failure details")
        sys.exit(1)
    print_success(f"{method} written to {path}")


@record.command("featured-memory")
@click.argument("prefs_file", required=False, type=click.Path(path_type=Path))
@click.option("--title", help="Memory title")
@click.option("--image", "image_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Cover image file to embed")
@click.option("--image-data", help="Pre-encoded '<meta>,<base64>' cover envelope")
@click.option("--author", help="Who shared the memory")
@click.option("--likes", type=int, default=0, show_default=True)
@click.option("--at", callback=parse_now, help="Timestamp to record instead of now (ISO-8601)")
@click.pass_context
def record_featured_memory(ctx, prefs_file, title, image_file, image_data, author, likes, at):
    """Store a new featured memory (updateFeaturedMemory)."""
    if image_file is not None and image_data is not None:
        raise click.UsageError("Use either --image or --image-data, not both.")
    envelope = image_envelope(image_file) if image_file is not None else image_data
    arguments = {"title": title, "imageUrl": envelope, "author": author, "likes": likes}
    _apply(ctx, prefs_file, "updateFeaturedMemory", arguments, at)


@record.command("picture-taken")
@click.argument("prefs_file", required=False, type=click.Path(path_type=Path))
@click.option("--at", callback=parse_now, help="Timestamp to record instead of now (ISO-8601)")
@click.pass_context
def record_picture_taken(ctx, prefs_file, at):
    """Mark today's picture as taken (pictureTaken)."""
    _apply(ctx, prefs_file, "pictureTaken", {}, at)


@record.command("nearby-stories")
@click.argument("prefs_file", required=False, type=click.Path(path_type=Path))
@click.option("--count", type=click.IntRange(min=0), default=0, show_default=True)
@click.pass_context
def record_nearby_stories(ctx, prefs_file, count):
    """Set the number of nearby stories (updateNearbyStories)."""
    _apply(ctx, prefs_file, "updateNearbyStories", {"count": count}, None)


# =============================================================================
# VERSION COMMAND
# =============================================================================


@familyverse.command()
def version():
    """Show version information."""
    print_header("FamilyVerse Widget")
    console.print(f"Version: [bold]{__version__}[/bold]")
    console.print(f"Python: {sys.version.split()[0]}")


def main():
    """Entry point for the console script."""
    familyverse()


if __name__ == "__main__":
    main()
