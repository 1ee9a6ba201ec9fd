"""
Module builder - Turns configuration into modules.

Resolves every filter, scale factor and value name against an
AnalysisCatalog once, at setup time.
"""

from domain.config import HistogramConfig, JobConfig, ModuleConfig
from domain.errors import ConfigurationError
from services.histograms.extractors import PairExtractor, ResolutionExtractor, ScalarExtractor
from services.histograms.spec import HistogramSpec, PairedHistogramSpec
from services.modules.base import Module
from services.modules.filter_module import FilterModule
from services.modules.histogram_module import HistogramModule
from .catalog import AnalysisCatalog


def build_histogram(config: HistogramConfig, catalog: AnalysisCatalog) -> HistogramSpec:
    """Build one histogram spec, choosing the extractor variant from ``kind``."""
    filters = [catalog.filter(name) for name in config.filters]
    scale_factors = [catalog.scale_factor(name) for name in config.scale_factors]
    values = [catalog.value(name) for name in config.values]

    if config.kind == "scalar":
        return HistogramSpec(
            config.name, config.axes, ScalarExtractor(values[0]),
            filters, scale_factors, config.title,
        )

    if config.kind == "pair":
        return HistogramSpec(
            config.name, config.axes, PairExtractor(values[0], values[1]),
            filters, scale_factors, config.title,
        )

    truth_fn = values[0]
    reco_fn = values[1] if len(values) > 1 else values[0]
    versus = catalog.value(config.versus) if config.versus else None
    return PairedHistogramSpec(
        config.name,
        config.axes,
        ResolutionExtractor(truth_fn, reco_fn, mode=config.mode, versus=versus),
        filters,
        scale_factors,
        config.title,
        selection_view=config.selection_view,
    )


def build_module(config: ModuleConfig, catalog: AnalysisCatalog) -> Module:
    """Build one module from its configuration."""
    if config.type == "filter":
        return FilterModule(
            config.name,
            [catalog.filter(name) for name in config.filters],
            depends_on=config.depends_on,
        )
    return HistogramModule(
        config.name,
        [build_histogram(h, catalog) for h in config.histograms],
        depends_on=config.depends_on,
        requires=config.requires,
    )


def build_modules(config: JobConfig, catalog: AnalysisCatalog) -> list[Module]:
    """
    Build all modules of a job in declaration order.

    Raises:
        ConfigurationError: If a filter is wrapped by two filter modules,
            which would make their cutflows share one pass counter
    """
    owners: dict[str, str] = {}
    for module in config.modules:
        if module.type != "filter":
            continue
        for name in module.filters:
            if name in owners:
                raise ConfigurationError(
                    f"filter '{name}' is wrapped by both '{owners[name]}' and '{module.name}'"
                )
            owners[name] = module.name

    return [build_module(module, catalog) for module in config.modules]
