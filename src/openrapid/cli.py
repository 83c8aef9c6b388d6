"""
Command-line interface for openrapid.

Provides commands for generating RAPID modules from saved action lists,
listing robot presets and checking programs for invalid actions.
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from openrapid import __version__
from openrapid.actions.serialization import load_program
from openrapid.core.config import ConfigManager, GeneratorSettings, load_settings
from openrapid.core.exceptions import OpenRapidError
from openrapid.core.logging import configure_logging
from openrapid.definitions.presets import RobotPreset, build_robot, get_robot
from openrapid.definitions.robot import Robot
from openrapid.postprocessor.base import GeneratorConfig
from openrapid.postprocessor.rapid import RAPIDGenerator, collect_tools, collect_work_objects

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level",
)
@click.option("--json-logs", is_flag=True, help="Write logs as JSON")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Generator settings file (YAML)",
)
@click.option(
    "--config-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Configuration directory with generator.yaml and robots/*.yaml",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str,
    json_logs: bool,
    config_file: Optional[Path],
    config_dir: Optional[Path],
) -> None:
    """openrapid - ABB RAPID code generation for industrial robots."""
    configure_logging(level=log_level.upper(), json_output=json_logs)
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["config_dir"] = config_dir


def _load_configuration(ctx: click.Context) -> tuple[GeneratorSettings, Optional[ConfigManager]]:
    config_dir = ctx.obj.get("config_dir")
    config_file = ctx.obj.get("config_file")
    manager = ConfigManager(config_dir) if config_dir is not None else None

    if config_file is not None:
        settings = load_settings(config_file)
    elif manager is not None:
        settings = manager.settings
    else:
        settings = GeneratorSettings()
    return settings, manager


def _resolve_robot(name: str, manager: Optional[ConfigManager]) -> Robot:
    """A robot cell from the configuration directory, otherwise a preset."""
    if manager is not None and name in manager.list_robots():
        return build_robot(manager.get_robot(name))
    return get_robot(name)


# =============================================================================
# Generation Commands
# =============================================================================


@main.command()
@click.argument("program", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--robot", "-r", "robot_name", default=None, help="Robot preset or cell name")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Output directory",
)
@click.option("--module-name", "-m", default=None, help="Name of the program module")
@click.pass_context
def generate(
    ctx: click.Context,
    program: Path,
    robot_name: Optional[str],
    output: Path,
    module_name: Optional[str],
) -> None:
    """Generate main_T.mod and BASE.sys from a saved action list."""
    try:
        settings, manager = _load_configuration(ctx)
        robot = _resolve_robot(robot_name or settings.robot_preset, manager)
        actions = load_program(program)

        config = GeneratorConfig.from_settings(settings)
        if module_name:
            config.module_name = module_name

        generator = RAPIDGenerator(robot, config=config)
        generator.create_rapid_code(actions)
        generator.create_base_code(
            tools=[robot.tool, *collect_tools(actions)],
            work_objects=collect_work_objects(actions),
        )
        written = generator.write(output)
    except OpenRapidError as e:
        console.print(f"[red]✗[/red] Generation failed: {e}")
        raise SystemExit(1)

    for path in written:
        console.print(f"[green]✓[/green] Wrote {path}")
    if not generator.first_movement_is_move_abs:
        console.print(
            "[yellow]![/yellow] The first movement is not an absolute joint movement; "
            "the start configuration of the robot is undefined."
        )


@main.command()
@click.argument("program", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check(program: Path) -> None:
    """Report invalid actions in a saved action list."""
    try:
        actions = load_program(program)
    except OpenRapidError as e:
        console.print(f"[red]✗[/red] Failed to load program: {e}")
        raise SystemExit(1)

    table = Table(title=f"Invalid actions: {program.name}")
    table.add_column("#", justify="right")
    table.add_column("Action", style="cyan")
    table.add_column("Reason")

    invalid = 0
    for index, action in enumerate(actions):
        errors = getattr(action, "validation_errors", [])
        if errors:
            invalid += 1
        for error in errors:
            table.add_row(str(index), type(action).__name__, error)

    if not invalid:
        console.print(f"[green]✓[/green] All {len(actions)} actions are valid")
        return

    console.print(table)
    console.print(f"[red]✗[/red] {invalid} of {len(actions)} actions are invalid")
    raise SystemExit(1)


# =============================================================================
# Robot Commands
# =============================================================================


@main.command()
def presets() -> None:
    """List available robot presets."""
    table = Table(title="Robot Presets")
    table.add_column("Name", style="cyan")
    table.add_column("Slug")
    table.add_column("Wrist Center (mm)")

    for preset in RobotPreset:
        data = preset.value
        x, y, z = data.axis_points[4]
        table.add_row(data.name, data.slug, f"{x:g}, {y:g}, {z:g}")

    console.print(table)


if __name__ == "__main__":
    main()
