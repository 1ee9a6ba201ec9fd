"""
AnalysisCatalog - Named filters, scale factors and value functions.

Explicit maps scoped to one job and passed to the module builder; there is
no process-wide registry.
"""

import importlib
import logging
from typing import Callable, Optional

from domain.config import ComponentConfig, JobConfig
from domain.errors import ConfigurationError, DuplicateNameError
from domain.events import EventView
from services.selection.filters import AllOf, CountFilter, Filter, RangeFilter, TriggerFilter
from services.selection.scale_factors import (
    BinnedScaleFactor,
    ConstantScaleFactor,
    FieldScaleFactor,
    ScaleFactor,
)


ValueFn = Callable[[EventView], Optional[float]]


class AnalysisCatalog:
    """Named components referenced by module and histogram configuration."""

    def __init__(self):
        self.filters: dict[str, Filter] = {}
        self.scale_factors: dict[str, ScaleFactor] = {}
        self.values: dict[str, ValueFn] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_filter(self, f: Filter) -> Filter:
        if f.name in self.filters:
            raise DuplicateNameError("filter", f.name)
        self.filters[f.name] = f
        return f

    def add_scale_factor(self, sf: ScaleFactor) -> ScaleFactor:
        if sf.name in self.scale_factors:
            raise DuplicateNameError("scale factor", sf.name)
        self.scale_factors[sf.name] = sf
        return sf

    def add_value(self, name: str, fn: ValueFn) -> ValueFn:
        if name in self.values:
            raise DuplicateNameError("value", name)
        self.values[name] = fn
        return fn

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def filter(self, name: str) -> Filter:
        if name not in self.filters:
            raise ConfigurationError(f"Unknown filter '{name}'")
        return self.filters[name]

    def scale_factor(self, name: str) -> ScaleFactor:
        if name not in self.scale_factors:
            raise ConfigurationError(f"Unknown scale factor '{name}'")
        return self.scale_factors[name]

    def value(self, name: str) -> ValueFn:
        if name not in self.values:
            raise ConfigurationError(f"Unknown value '{name}'")
        return self.values[name]

    # ------------------------------------------------------------------
    # Construction from configuration
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: JobConfig) -> 'AnalysisCatalog':
        """
        Build the catalog from the component sections of a job config.

        Values come first (binned scale factors refer to them), then
        filters in declaration order (``all_of`` refers to earlier ones),
        then scale factors. A configured plugin runs last and may add
        arbitrary Python components.
        """
        catalog = cls()
        for component in config.values:
            catalog.add_value(component.name, _build_value(component))
        for component in config.filters:
            catalog.add_filter(_build_filter(component, catalog))
        for component in config.scale_factors:
            catalog.add_scale_factor(_build_scale_factor(component, catalog))
        if config.catalog_plugin:
            catalog.load_plugin(config.catalog_plugin)
        return catalog

    def load_plugin(self, spec: str):
        """
        Call ``package.module:function`` with this catalog.

        Raises:
            ConfigurationError: If the plugin cannot be imported
        """
        module_name, _, function_name = spec.partition(":")
        if not module_name or not function_name:
            raise ConfigurationError(f"catalog_plugin must look like 'module:function', got '{spec}'")
        try:
            module = importlib.import_module(module_name)
            register = getattr(module, function_name)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Cannot load catalog plugin '{spec}': {e}") from e
        self.logger.info(f"Loading catalog plugin: {spec}")
        register(self)


def _build_filter(component: ComponentConfig, catalog: AnalysisCatalog) -> Filter:
    p = component.params
    if component.type == "trigger":
        return TriggerFilter(component.name, p["paths"])
    if component.type == "count":
        return CountFilter(component.name, p["collection"], p.get("minimum", 1), p.get("maximum"))
    if component.type == "range":
        return RangeFilter(component.name, p["field"], p.get("low"), p.get("high"))
    if component.type == "all_of":
        return AllOf(component.name, [catalog.filter(n) for n in p["filters"]])
    raise ConfigurationError(f"filter '{component.name}': unknown type '{component.type}'")


def _build_scale_factor(component: ComponentConfig, catalog: AnalysisCatalog) -> ScaleFactor:
    p = component.params
    if component.type == "constant":
        if "value" in p:
            return ConstantScaleFactor(component.name, p["value"])
        return ConstantScaleFactor.normalization(
            component.name, p["luminosity"], p["cross_section"], p["sum_of_weights"]
        )
    if component.type == "field":
        return FieldScaleFactor(component.name, p["field"], p.get("default"))
    if component.type == "binned":
        return BinnedScaleFactor(
            component.name,
            catalog.value(p["variable"]),
            p["edges"],
            p["values"],
            clamp=p.get("clamp", False),
        )
    raise ConfigurationError(f"scale factor '{component.name}': unknown type '{component.type}'")


def _build_value(component: ComponentConfig) -> ValueFn:
    p = component.params
    if component.type == "field":
        return field_value(p["field"])
    if component.type == "object":
        return object_value(p["collection"], p["attribute"], p.get("index", 0))
    if component.type == "count":
        collection = p["collection"]
        return lambda view: view.count(collection)
    if component.type == "met":
        attribute = p.get("attribute", "pt")
        return lambda view: getattr(view.met, attribute) if view.met is not None else None
    raise ConfigurationError(f"value '{component.name}': unknown type '{component.type}'")


def field_value(name: str) -> ValueFn:
    """Value function reading a scalar event field."""
    def value(view: EventView) -> Optional[float]:
        raw = view.get(name)
        return float(raw) if raw is not None else None
    return value


def object_value(collection: str, attribute: str, index: int = 0) -> ValueFn:
    """Value function reading one attribute of the n-th object of a collection."""
    def value(view: EventView) -> Optional[float]:
        objects = view.collection(collection)
        if len(objects) <= index:
            return None
        return float(objects[index][attribute])
    return value
