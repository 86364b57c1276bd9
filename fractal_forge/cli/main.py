"""
Command-line interface for chaos game rendering.

This module provides a CLI for rendering presets and description files,
listing presets and converting between presets and description files.
"""

import click
import sys
from pathlib import Path
import logging
import time

from .. import __version__
from ..api import FractalForge
from ..core.game import RunMode
from ..core.presets import create_preset, is_preset, list_presets, JULIA_PRESETS
from ..io.config import load_config_from_args
from ..io.description_file import format_description, read_description, write_description
from ..io.state import AppContext

logger = logging.getLogger(__name__)

LAST_USED = "-"


def _fail(ctx, error: Exception):
    click.echo(f"Error: {error}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path')
@click.option('--state', type=click.Path(), help='Saved state file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, config, state, verbose, quiet):
    """
    Fractal Forge - chaos game fractal rendering tool.

    Render iterated function systems and Julia sets from presets or
    description files.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Fractal Forge v{__version__}")
        click.echo(f"Python: {sys.version}")

        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose
    ctx.obj['context'] = AppContext(state) if state else AppContext()


@main.command()
@click.argument('source')
@click.argument('output', type=click.Path())
@click.option('--mode', type=click.Choice([mode.value for mode in RunMode]), help='Run mode')
@click.option('--steps', type=int, help='Number of chaos game steps')
@click.option('--size', type=int, help='Square canvas size (sets width and height)')
@click.option('--width', '-w', type=int, help='Canvas width')
@click.option('--height', '-h', type=int, help='Canvas height')
@click.option('--seed', type=int, help='Random seed for reproducible renders')
@click.option('--workers', type=int, help='Number of painting threads')
@click.option('--heatmap/--no-heatmap', default=None, help='Colour pixels by hit density')
@click.option('--power', type=int, help='Root power for Julia transforms')
@click.option('--save-raw/--no-save-raw', default=None, help='Also save the density buffer (.npy)')
@click.option('--remember/--no-remember', default=True, help='Store the fractal as last used')
@click.pass_context
def render(ctx, source, output, remember, **kwargs):
    """
    Render a fractal image.

    SOURCE: Preset name, description file, or "-" for the last used fractal
    OUTPUT: Output image file path
    """
    try:
        forge_config = load_config_from_args(ctx.obj.get('config_file'))

        if kwargs.get('size') is not None:
            forge_config.width = forge_config.height = kwargs['size']

        overrides = {
            'mode': kwargs.get('mode'),
            'steps': kwargs.get('steps'),
            'width': kwargs.get('width'),
            'height': kwargs.get('height'),
            'seed': kwargs.get('seed'),
            'workers': kwargs.get('workers'),
            'heatmap': kwargs.get('heatmap'),
            'power': kwargs.get('power'),
            'save_raw_data': kwargs.get('save_raw'),
        }
        for key, value in overrides.items():
            if value is not None:
                setattr(forge_config, key, value)

        forge = FractalForge(forge_config, ctx.obj['context'])
        description = forge.load(None if source == LAST_USED else source)

        click.echo(f"Rendering {description.type_name} fractal "
                   f"({forge_config.width}x{forge_config.height}, {forge_config.mode})...")
        start_time = time.time()

        forge.render()
        saved = forge.save_image(output)

        render_time = time.time() - start_time
        click.echo(f"Render complete: {render_time:.2f}s")
        click.echo(f"Saved: {saved}")

        if remember:
            forge.remember()

    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.pass_context
def presets(ctx):
    """List built-in fractal presets."""
    try:
        click.echo("Available presets:")
        for name in list_presets():
            if name in JULIA_PRESETS:
                real, imag = JULIA_PRESETS[name]
                click.echo(f"  {name:<12} Julia c = {real} + {imag}i")
            else:
                description = create_preset(name)
                click.echo(f"  {name:<12} {description.type_name}, "
                           f"{len(description.transforms)} transforms")

    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument('source')
@click.pass_context
def show(ctx, source):
    """
    Print a fractal description in the file format.

    SOURCE: Preset name or description file
    """
    try:
        if is_preset(source):
            description = create_preset(source)
        else:
            description = read_description(source)
            if description is None:
                raise click.ClickException(f"Could not read fractal description: {source}")

        click.echo(format_description(description), nl=False)

    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument('preset')
@click.argument('output', type=click.Path())
@click.pass_context
def export(ctx, preset, output):
    """
    Write a preset to a description file.

    PRESET: Preset name
    OUTPUT: Description file path
    """
    try:
        description = create_preset(preset)
        write_description(description, Path(output))
        click.echo(f"Saved: {output}")

    except Exception as e:
        _fail(ctx, e)


if __name__ == '__main__':
    main()
