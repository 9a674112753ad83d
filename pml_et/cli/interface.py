"""
PML Pipeline CLI Interface

Command-line interface for the PML gridded GPP and evapotranspiration model.
"""

import json
from pathlib import Path

import click
from loguru import logger

from ..config.settings import (
    FORCING_BANDS,
    LAND_COVER_YEAR_MAX,
    LAND_COVER_YEAR_MIN,
    PARAMETER_BANDS,
    PERIOD_BANDS,
    QUANTIZATION,
    WATER_ICE_CODES,
    clamp_land_cover_year,
)
from ..core import constants
from ..core.constants import ModelVariant
from ..io import ForcingProvider, LandCoverParameterProvider
from ..pipeline import PMLPipeline, PipelineConfig
from ..utils.exceptions import PMLError, create_error_context
from ..utils.logger import Logger

VARIANT_CHOICES = ['V1', 'V2']


def validate_year(ctx, param, value):
    """Validate a four-digit year."""
    if value is None:
        return None
    if not 1900 <= value <= 2100:
        raise click.BadParameter(f'Year out of range: {value}', ctx=ctx, param=param)
    return value


def resolve_variant(ctx, variant):
    """Variant from the command line, else from the loaded configuration."""
    config = ctx.obj['config']
    return ModelVariant.parse(variant) if variant else config.variant


# ============================================================================
# Main Command Group
# ============================================================================

@click.group()
@click.option('--verbose', '-v', is_flag=True, default=False, help='Enable verbose logging')
@click.option('--log-file', type=click.Path(path_type=Path), help='Custom log file path')
@click.option('--config', type=click.Path(exists=True, path_type=Path), help='Configuration file path (YAML or JSON)')
@click.version_option(version='0.1.0', prog_name='PML')
@click.pass_context
def cli(ctx, verbose, log_file, config):
    """
    PML - Penman-Monteith-Leuning GPP and evapotranspiration model.

    \b
    Common commands:
      pml run      Run the model over a range of years
      pml params   Show the parameter set of a year
      pml info     Show model constants and band layouts

    For help on a specific command, run: pml COMMAND --help
    """
    ctx.ensure_object(dict)

    Logger.setup(name='pml_et', log_file=str(log_file) if log_file else None,
                 level='DEBUG' if verbose else 'INFO')

    try:
        ctx.obj['config'] = PipelineConfig.from_file(config) if config else PipelineConfig()
    except PMLError as e:
        raise click.ClickException(f'Error loading config: {e}')

    ctx.obj['verbose'] = verbose
    ctx.obj['log_file'] = log_file


# ============================================================================
# Run Command
# ============================================================================

@cli.command()
@click.option('--forcing', '-f', type=click.Path(exists=True, path_type=Path), required=True, help='Forcing NetCDF with a time dimension')
@click.option('--land-cover', '-l', type=click.Path(exists=True, path_type=Path), required=True, help='Land-cover NetCDF or GeoTIFF')
@click.option('--table', '-t', type=click.Path(exists=True, path_type=Path), required=True, help='Per-class parameter table (CSV or YAML)')
@click.option('--start-year', '-s', type=int, required=True, callback=validate_year, help='First year to run')
@click.option('--end-year', '-e', type=int, callback=validate_year, help='Last year to run (default: start year)')
@click.option('--variant', type=click.Choice(VARIANT_CHOICES, case_sensitive=False), help='Model variant (default: from config, V2)')
@click.option('--output-dir', '-o', type=click.Path(path_type=Path), help='Directory for exported rasters')
@click.option('--format', 'fmt', type=click.Choice(['netcdf', 'geotiff'], case_sensitive=False), help='Export format (default: from config, netcdf)')
@click.option('--annual', is_flag=True, default=False, help='Reduce every year to annual totals')
@click.option('--no-qc', is_flag=True, default=False, help='Do not require or pass through the qc band')
@click.option('--dry-run', is_flag=True, default=False, help='Preview without processing')
@click.pass_context
def run(ctx, forcing, land_cover, table, start_year, end_year, variant, output_dir, fmt, annual, no_qc, dry_run):
    """
    Run the PML model for every year of a range.

    \b
    Examples:
      pml run -f forcing.nc -l landcover.nc -t params.csv -s 2003 -e 2005 -o output/
      pml run -f forcing.nc -l landcover.tif -t params.yaml -s 2010 --variant V1 --dry-run
    """
    config = ctx.obj['config']
    end_year = end_year if end_year is not None else start_year
    if end_year < start_year:
        raise click.BadParameter(f'End year {end_year} is before start year {start_year}')

    variant = resolve_variant(ctx, variant)
    config.variant = variant
    if fmt:
        config.output_format = fmt.lower()
    if no_qc:
        config.include_qc = False

    try:
        forcing_provider = ForcingProvider.from_netcdf(forcing, include_qc=config.include_qc)
        parameter_provider = LandCoverParameterProvider.from_files(table, land_cover)
    except PMLError as e:
        raise click.ClickException(str(e))

    years = list(range(start_year, end_year + 1))
    available = set(forcing_provider.years())
    click.echo(f'{variant.value}: {len(years)} year(s), {start_year}-{end_year}')

    if dry_run:
        click.echo('\nDry run - years that would be processed:')
        for year in years:
            status = 'forcing available' if year in available else 'no forcing'
            click.echo(f'  - {year} (land cover {clamp_land_cover_year(year)}, {status})')
        click.echo(f'\nOutput directory: {output_dir or "none"}')
        click.echo(f'Output format: {config.output_format}')
        return

    pipeline = PMLPipeline(config, forcing_provider, parameter_provider)
    try:
        results = pipeline.run_years(start_year, end_year, variant, output_dir=output_dir, annual=annual)
    except PMLError as e:
        logger.debug(f"Run failed: {create_error_context(e, {'years': [start_year, end_year], 'variant': variant.value})}")
        raise click.ClickException(str(e))

    for year, outputs in results.items():
        click.echo(f'  [OK] {year}: {len(outputs)} output(s)')
    if output_dir:
        click.echo(f'\nProcessing complete. Results saved to: {output_dir}')


# ============================================================================
# Params Command
# ============================================================================

@cli.command()
@click.option('--land-cover', '-l', type=click.Path(exists=True, path_type=Path), required=True, help='Land-cover NetCDF or GeoTIFF')
@click.option('--table', '-t', type=click.Path(exists=True, path_type=Path), required=True, help='Per-class parameter table (CSV or YAML)')
@click.option('--year', '-y', type=int, required=True, callback=validate_year, help='Year to look up')
@click.option('--variant', type=click.Choice(VARIANT_CHOICES, case_sensitive=False), help='Model variant (default: from config, V2)')
@click.option('--json', 'output_json', is_flag=True, default=False, help='Output summary as JSON')
@click.pass_context
def params(ctx, land_cover, table, year, variant, output_json):
    """Show the land-cover parameter grids used for a year."""
    variant = resolve_variant(ctx, variant)
    try:
        provider = LandCoverParameterProvider.from_files(table, land_cover)
        parameter_set = provider.get(year, variant)
    except PMLError as e:
        raise click.ClickException(str(e))

    summary = parameter_set.summary()
    if output_json:
        click.echo(json.dumps({
            'year': year,
            'land_cover_year': parameter_set.year,
            'variant': variant.value,
            'parameters': summary,
        }, indent=2))
        return

    click.echo(f'{variant.value} parameters for {year} (land cover {parameter_set.year})')
    click.echo(f'{"name":<10}{"mean":>12}{"min":>12}{"max":>12}')
    for name, stats in summary.items():
        click.echo(f'{name:<10}{stats["mean"]:>12.4g}{stats["min"]:>12.4g}{stats["max"]:>12.4g}')


# ============================================================================
# Info Command
# ============================================================================

@cli.command()
@click.option('--json', 'output_json', is_flag=True, default=False, help='Output as JSON')
@click.pass_context
def info(ctx, output_json):
    """Show model constants, band layouts and output encoding."""
    data = {
        'forcing_bands': FORCING_BANDS,
        'parameters': {v.value: bands for v, bands in PARAMETER_BANDS.items()},
        'output_bands': {v.value: bands for v, bands in PERIOD_BANDS.items()},
        'land_cover_years': [LAND_COVER_YEAR_MIN, LAND_COVER_YEAR_MAX],
        'water_ice_codes': list(WATER_ICE_CODES),
        'quantization': QUANTIZATION,
        'constants': {
            'kQ': constants.KQ,
            'kA': constants.KA,
            'Q50': constants.Q50,
            'D0': constants.D0,
            'von_karman': constants.VON_KARMAN,
            'reference_height': constants.REFERENCE_HEIGHT,
            'Cp': constants.AIR_SPECIFIC_HEAT,
        },
        'run_config': ctx.obj['config'].to_dict(),
    }
    if output_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo('PML model')
    click.echo(f'  Forcing bands: {", ".join(FORCING_BANDS)}')
    for variant, bands in data['output_bands'].items():
        click.echo(f'  {variant} outputs: {", ".join(bands)}')
        click.echo(f'  {variant} parameters: {", ".join(data["parameters"][variant])}')
    click.echo(f'  Land cover years: {LAND_COVER_YEAR_MIN}-{LAND_COVER_YEAR_MAX}')
    click.echo(f'  Water/ice codes: {", ".join(str(c) for c in WATER_ICE_CODES)}')
    click.echo(f'  Fixed point: x{QUANTIZATION["scale"]:g} as {QUANTIZATION["dtype"]}, no-data {QUANTIZATION["nodata"]}')
    for name, value in data['constants'].items():
        click.echo(f'  {name} = {value}')
    run_config = data['run_config']
    click.echo(f'  Run config: {run_config["variant"]}, window {run_config["window"]}, '
               f'{run_config["degenerate_policy"]} degenerate pixels, {run_config["output_format"]} output')


if __name__ == '__main__':
    cli()
