"""PML processing pipeline."""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml
from loguru import logger

from ..config.settings import SOIL_MOISTURE_WINDOW, WATER_ICE_CODES
from ..conductance import AerodynamicConfig
from ..core.constants import ModelVariant
from ..core.datacube import DataCube
from ..flux import (
    AggregatorConfig,
    DailyFluxConfig,
    DailyFluxModel,
    QuantizationConfig,
    Quantizer,
    TemporalAggregator,
)
from ..output import OutputWriter, annual_totals
from ..utils.exceptions import ConfigurationError, PipelineError, PMLError
from ..utils.logger import get_progress_bar, log_step


@dataclass
class PipelineConfig:
    """Settings of a PML run."""
    variant: ModelVariant = ModelVariant.V2
    include_qc: bool = True
    degenerate_policy: str = "mask"
    window: int = SOIL_MOISTURE_WINDOW
    water_ice_codes: Tuple[int, ...] = WATER_ICE_CODES
    validate_inputs: bool = True

    quantization: QuantizationConfig = field(default_factory=QuantizationConfig)
    aerodynamic: AerodynamicConfig = field(default_factory=AerodynamicConfig)

    # Export settings used by run_years
    output_format: str = "netcdf"
    write_statistics: bool = False

    def __post_init__(self):
        try:
            self.variant = ModelVariant.parse(self.variant)
        except ValueError as e:
            raise ConfigurationError(str(e), config_param="variant") from e

    @classmethod
    def from_dict(cls, values: dict) -> "PipelineConfig":
        """
        Build a config from a plain dictionary, e.g. a parsed YAML file.

        Raises:
            ConfigurationError: On unknown keys
        """
        values = dict(values or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}", config_param=unknown[0])

        if isinstance(values.get("quantization"), dict):
            values["quantization"] = QuantizationConfig(**values["quantization"])
        if isinstance(values.get("aerodynamic"), dict):
            values["aerodynamic"] = AerodynamicConfig(**values["aerodynamic"])
        if "water_ice_codes" in values:
            values["water_ice_codes"] = tuple(values["water_ice_codes"])
        return cls(**values)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PipelineConfig":
        return cls.from_dict(load_config(path))

    def to_dict(self) -> dict:
        values = asdict(self)
        values["variant"] = self.variant.value
        values["water_ice_codes"] = list(self.water_ice_codes)
        return values

    def daily_config(self, variant: ModelVariant) -> DailyFluxConfig:
        return DailyFluxConfig(
            variant=variant,
            include_qc=self.include_qc,
            degenerate_policy=self.degenerate_policy,
            water_ice_codes=self.water_ice_codes,
            validate_inputs=self.validate_inputs,
            aerodynamic=self.aerodynamic,
        )

    def aggregator_config(self, variant: ModelVariant) -> AggregatorConfig:
        return AggregatorConfig(window=self.window, variant=variant, include_qc=self.include_qc)


def load_config(path: Union[str, Path]) -> dict:
    """
    Read a YAML or JSON configuration file.

    Raises:
        ConfigurationError: If the file is missing or not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}", config_param=str(path))

    with open(path, "r") as f:
        if path.suffix.lower() == ".json":
            values = json.load(f)
        else:
            values = yaml.safe_load(f)

    if values is None:
        return {}
    if not isinstance(values, dict):
        raise ConfigurationError(f"Configuration file must hold a mapping: {path}", config_param=str(path))
    return values


class PMLPipeline:
    """
    Main processing pipeline for the PML model.

    Ties a forcing provider and a parameter provider to the daily flux
    model and the temporal aggregator. run_period() is the core entry point.

    Example:
        >>> pipeline = PMLPipeline(PipelineConfig(), forcing, parameters)
        >>> outputs = pipeline.run_period(2010)
    """

    def __init__(self, config: Optional[PipelineConfig] = None, forcing_provider=None, parameter_provider=None):
        self.config = config or PipelineConfig()
        self.forcing_provider = forcing_provider
        self.parameter_provider = parameter_provider
        self.quantizer = Quantizer(self.config.quantization)
        logger.info(f"Initialized PMLPipeline ({self.config.variant.value})")

    def _check_providers(self) -> None:
        if self.forcing_provider is None:
            raise PipelineError("No forcing provider configured", pipeline_stage="setup")
        if self.parameter_provider is None:
            raise PipelineError("No parameter provider configured", pipeline_stage="setup")

    def build_models(self, variant=None) -> Tuple[DailyFluxModel, TemporalAggregator]:
        variant = ModelVariant.parse(variant or self.config.variant)
        daily = DailyFluxModel(self.config.daily_config(variant), self.quantizer)
        aggregator = TemporalAggregator(self.config.aggregator_config(variant), self.quantizer)
        return daily, aggregator

    def run_daily(self, year: int, variant=None) -> List[DataCube]:
        """Daily outputs of one year in physical units, before the temporal pass."""
        self._check_providers()
        variant = ModelVariant.parse(variant or self.config.variant)
        model, _ = self.build_models(variant)

        with log_step(f"Parameters {variant.value} {year}"):
            params = self.parameter_provider.get(year, variant)
        with log_step(f"Forcing {year}"):
            records = self.forcing_provider.get_period(year)
        if not records:
            logger.warning(f"No forcing records for {year}")
            return []

        with log_step(f"Daily flux model ({len(records)} steps)"):
            return [model.compute(record, params) for record in records]

    def run_period(self, year: int, variant=None) -> List[DataCube]:
        """
        Run the model for one year.

        Args:
            year: Calendar year of the forcing period
            variant: PML_V1 or PML_V2; the configured variant if omitted

        Returns:
            Period outputs, one per forcing record in time order, flux
            bands quantized
        """
        variant = ModelVariant.parse(variant or self.config.variant)
        daily = self.run_daily(year, variant)
        if not daily:
            return []

        _, aggregator = self.build_models(variant)
        with log_step(f"Temporal aggregation {year}"):
            outputs = aggregator.aggregate(daily)
        logger.info(f"{variant.value} {year}: {len(outputs)} period output(s)")
        return outputs

    def run_years(
        self,
        start_year: int,
        end_year: int,
        variant=None,
        output_dir: Optional[Union[str, Path]] = None,
        annual: bool = False,
        progress: bool = True,
    ) -> Dict[int, List[DataCube]]:
        """
        Run every year of an inclusive range, optionally writing the outputs.

        Returns:
            year -> period outputs (or the annual-total cube when annual=True)

        Raises:
            PipelineError: If a year fails; the failing year is in the details
        """
        if end_year < start_year:
            raise ConfigurationError(f"End year {end_year} is before start year {start_year}",
                                     config_param="end_year")
        variant = ModelVariant.parse(variant or self.config.variant)
        writer = OutputWriter(output_dir, self.quantizer) if output_dir is not None else None

        years = list(range(int(start_year), int(end_year) + 1))
        results = {}
        bar = get_progress_bar(len(years), desc=f"{variant.value}") if progress else None
        try:
            for year in years:
                try:
                    outputs = self.run_period(year, variant)
                except PMLError as e:
                    e.add_detail("year", year)
                    raise
                except Exception as e:
                    raise PipelineError(f"Year {year} failed: {e}", pipeline_stage="run_years",
                                        step=str(year)) from e

                if writer is not None and outputs:
                    writer.write_period(outputs, variant, year, self.config.output_format)
                    if self.config.write_statistics:
                        writer.write_period_statistics(outputs, variant, year)

                results[year] = [annual_totals(outputs, year, self.quantizer)] if annual and outputs else outputs
                if bar is not None:
                    bar.update(1)
        finally:
            if bar is not None:
                bar.close()
        return results
