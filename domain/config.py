"""
Configuration domain models.

Validated configuration objects for a module-graph job.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ConfigurationError, DuplicateNameError


HISTOGRAM_KINDS = ("scalar", "pair", "resolution")
MODULE_TYPES = ("filter", "histogram")
SELECTION_VIEWS = ("reco", "truth")
RESOLUTION_MODES = ("difference", "relative", "ratio")


@dataclass(frozen=True)
class AxisConfig:
    """Fixed binning of one histogram axis."""

    bins: int
    low: float
    high: float
    label: str = ""

    def __post_init__(self):
        """Validate axis binning."""
        if self.bins <= 0:
            raise ConfigurationError(f"bins must be positive, got {self.bins}")
        if not self.low < self.high:
            raise ConfigurationError(
                f"low edge ({self.low}) must be below high edge ({self.high})"
            )

    @property
    def width(self) -> float:
        return (self.high - self.low) / self.bins

    @classmethod
    def from_dict(cls, axis_dict: dict) -> 'AxisConfig':
        return cls(
            bins=int(axis_dict["bins"]),
            low=float(axis_dict["low"]),
            high=float(axis_dict["high"]),
            label=axis_dict.get("label", ""),
        )


@dataclass(frozen=True)
class HistogramConfig:
    """Binning, selection and value extraction of one histogram."""

    name: str
    axes: tuple[AxisConfig, ...]
    values: tuple[str, ...]
    kind: str = "scalar"
    filters: tuple[str, ...] = field(default_factory=tuple)
    scale_factors: tuple[str, ...] = field(default_factory=tuple)
    selection_view: str = "reco"
    mode: str = "difference"
    versus: Optional[str] = None
    title: str = ""

    def __post_init__(self):
        """Validate histogram configuration."""
        if not self.name:
            raise ConfigurationError("histogram name cannot be empty")
        if self.kind not in HISTOGRAM_KINDS:
            raise ConfigurationError(
                f"histogram '{self.name}': kind must be one of {HISTOGRAM_KINDS}, got '{self.kind}'"
            )
        if self.selection_view not in SELECTION_VIEWS:
            raise ConfigurationError(
                f"histogram '{self.name}': selection_view must be one of {SELECTION_VIEWS}"
            )
        if self.mode not in RESOLUTION_MODES:
            raise ConfigurationError(
                f"histogram '{self.name}': mode must be one of {RESOLUTION_MODES}"
            )

        expected_values = {"scalar": (1,), "pair": (2,), "resolution": (1, 2)}[self.kind]
        if len(self.values) not in expected_values or not all(self.values):
            raise ConfigurationError(
                f"histogram '{self.name}': kind '{self.kind}' needs {expected_values} "
                f"value name(s), got {list(self.values)}"
            )

        expected_axes = 1
        if self.kind == "pair" or (self.kind == "resolution" and self.versus):
            expected_axes = 2
        if len(self.axes) != expected_axes:
            raise ConfigurationError(
                f"histogram '{self.name}': kind '{self.kind}' needs {expected_axes} axes, "
                f"got {len(self.axes)}"
            )
        if self.versus and self.kind != "resolution":
            raise ConfigurationError(
                f"histogram '{self.name}': 'versus' only applies to resolution histograms"
            )

    @property
    def is_paired(self) -> bool:
        return self.kind == "resolution"

    @classmethod
    def from_dict(cls, hist_dict: dict) -> 'HistogramConfig':
        """
        Create a HistogramConfig from a dictionary.

        Accepts either an ``axes`` list or the one-dimensional shorthand
        ``bins`` / ``low`` / ``high``, and ``value`` as a single name or a
        list of names.
        """
        if "axes" in hist_dict:
            axes = tuple(AxisConfig.from_dict(a) for a in hist_dict["axes"])
        else:
            axes = (AxisConfig.from_dict(hist_dict),)
        values = hist_dict.get("value", [])
        if isinstance(values, str):
            values = [values]
        return cls(
            name=hist_dict["name"],
            axes=axes,
            values=tuple(values),
            kind=hist_dict.get("kind", "scalar"),
            filters=tuple(hist_dict.get("filters", [])),
            scale_factors=tuple(hist_dict.get("scale_factors", [])),
            selection_view=hist_dict.get("selection_view", "reco"),
            mode=hist_dict.get("mode", "difference"),
            versus=hist_dict.get("versus"),
            title=hist_dict.get("title", ""),
        )


@dataclass(frozen=True)
class ComponentConfig:
    """Definition of a named filter, scale factor or value extractor."""

    name: str
    type: str
    params: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("component name cannot be empty")
        if not self.type:
            raise ConfigurationError(f"component '{self.name}': type cannot be empty")

    @classmethod
    def from_dict(cls, component_dict: dict) -> 'ComponentConfig':
        params = {k: v for k, v in component_dict.items() if k not in ("name", "type")}
        return cls(name=component_dict["name"], type=component_dict["type"], params=params)


@dataclass(frozen=True)
class ModuleConfig:
    """One module of the processing graph."""

    name: str
    type: str
    depends_on: tuple[str, ...] = field(default_factory=tuple)
    filters: tuple[str, ...] = field(default_factory=tuple)
    histograms: tuple[HistogramConfig, ...] = field(default_factory=tuple)
    requires: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate module configuration."""
        if not self.name:
            raise ConfigurationError("module name cannot be empty")
        if self.type not in MODULE_TYPES:
            raise ConfigurationError(
                f"module '{self.name}': type must be one of {MODULE_TYPES}, got '{self.type}'"
            )
        if self.type == "filter" and not self.filters:
            raise ConfigurationError(f"filter module '{self.name}' needs at least one filter")
        if self.type == "filter" and self.histograms:
            raise ConfigurationError(f"filter module '{self.name}' cannot own histograms")
        missing = set(self.requires) - set(self.depends_on)
        if missing:
            raise ConfigurationError(
                f"module '{self.name}': required filter modules {sorted(missing)} "
                "must also be listed in depends_on"
            )

    @classmethod
    def from_dict(cls, module_dict: dict) -> 'ModuleConfig':
        requires = tuple(module_dict.get("requires", []))
        depends_on = list(module_dict.get("depends_on", []))
        # Required filter modules are implicit dependencies
        for name in requires:
            if name not in depends_on:
                depends_on.append(name)
        return cls(
            name=module_dict["name"],
            type=module_dict.get("type", "histogram"),
            depends_on=tuple(depends_on),
            filters=tuple(module_dict.get("filters", [])),
            histograms=tuple(
                HistogramConfig.from_dict(h) for h in module_dict.get("histograms", [])
            ),
            requires=requires,
        )


@dataclass(frozen=True)
class InputConfig:
    """Where events come from."""

    files: tuple[str, ...] = field(default_factory=tuple)
    tree_name: str = "Events"
    truth_files: tuple[str, ...] = field(default_factory=tuple)
    truth_tree_name: Optional[str] = None
    branches: Optional[tuple[str, ...]] = None
    step_size: int = 100_000
    max_events: Optional[int] = None

    def __post_init__(self):
        """Validate input configuration."""
        if self.step_size <= 0:
            raise ConfigurationError(f"step_size must be positive, got {self.step_size}")
        if self.max_events is not None and self.max_events < 0:
            raise ConfigurationError(f"max_events must be non-negative, got {self.max_events}")
        if self.truth_files and len(self.truth_files) != len(self.files):
            raise ConfigurationError(
                f"truth_files ({len(self.truth_files)}) must pair one-to-one with "
                f"files ({len(self.files)})"
            )

    @classmethod
    def from_dict(cls, input_dict: dict) -> 'InputConfig':
        branches = input_dict.get("branches")
        return cls(
            files=tuple(input_dict.get("files", [])),
            tree_name=input_dict.get("tree_name", "Events"),
            truth_files=tuple(input_dict.get("truth_files", [])),
            truth_tree_name=input_dict.get("truth_tree_name"),
            branches=tuple(branches) if branches else None,
            step_size=input_dict.get("step_size", 100_000),
            max_events=input_dict.get("max_events"),
        )


@dataclass(frozen=True)
class OutputConfig:
    """Where results go."""

    output_dir: str = "./output"
    output_filename: str = "histograms.root"
    stats_filename: str = "job_stats.json"
    report_filename: str = "cutflow.txt"

    def __post_init__(self):
        if not self.output_dir:
            raise ConfigurationError("output_dir cannot be empty")
        if not self.output_filename:
            raise ConfigurationError("output_filename cannot be empty")

    @classmethod
    def from_dict(cls, output_dict: dict) -> 'OutputConfig':
        return cls(
            output_dir=output_dict.get("output_dir", "./output"),
            output_filename=output_dict.get("output_filename", "histograms.root"),
            stats_filename=output_dict.get("stats_filename", "job_stats.json"),
            report_filename=output_dict.get("report_filename", "cutflow.txt"),
        )


@dataclass(frozen=True)
class JobConfig:
    """
    Complete job configuration.

    Immutable configuration object validated at creation.
    """

    modules: tuple[ModuleConfig, ...]

    # Named components referenced by modules and histograms
    filters: tuple[ComponentConfig, ...] = field(default_factory=tuple)
    scale_factors: tuple[ComponentConfig, ...] = field(default_factory=tuple)
    values: tuple[ComponentConfig, ...] = field(default_factory=tuple)

    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Run metadata
    run_name: str = "module_job"
    show_progress_bar: bool = True
    batch_job_index: Optional[int] = None
    total_batch_jobs: Optional[int] = None
    catalog_plugin: Optional[str] = None

    def __post_init__(self):
        """Validate job configuration."""
        if not self.modules:
            raise ConfigurationError("At least one module must be configured")

        seen = set()
        for module in self.modules:
            if module.name in seen:
                raise DuplicateNameError("module", module.name)
            seen.add(module.name)

        for kind, components in (
            ("filter", self.filters),
            ("scale factor", self.scale_factors),
            ("value", self.values),
        ):
            names = set()
            for component in components:
                if component.name in names:
                    raise DuplicateNameError(kind, component.name)
                names.add(component.name)

        if self.batch_job_index is not None:
            if self.total_batch_jobs is None:
                raise ConfigurationError("total_batch_jobs required when batch_job_index is set")
            if not 1 <= self.batch_job_index <= self.total_batch_jobs:
                raise ConfigurationError(
                    f"batch_job_index ({self.batch_job_index}) must be in "
                    f"1..{self.total_batch_jobs}"
                )

    @property
    def histogram_configs(self) -> list[HistogramConfig]:
        """All histogram configurations across modules, in declaration order."""
        return [h for module in self.modules for h in module.histograms]

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'JobConfig':
        """
        Create JobConfig from a dictionary (e.g., loaded from YAML).

        Args:
            config_dict: Dictionary with configuration values

        Returns:
            Validated JobConfig instance
        """
        run_metadata = config_dict.get("run_metadata", {})
        return cls(
            modules=tuple(ModuleConfig.from_dict(m) for m in config_dict.get("modules", [])),
            filters=_components(config_dict, "filters"),
            scale_factors=_components(config_dict, "scale_factors"),
            values=_components(config_dict, "values"),
            input=InputConfig.from_dict(config_dict.get("input", {})),
            output=OutputConfig.from_dict(config_dict.get("output", {})),
            run_name=run_metadata.get("run_name", "module_job"),
            show_progress_bar=run_metadata.get("show_progress_bar", True),
            batch_job_index=run_metadata.get("batch_job_index"),
            total_batch_jobs=run_metadata.get("total_batch_jobs"),
            catalog_plugin=config_dict.get("catalog_plugin"),
        )


def _components(config_dict: dict, key: str) -> tuple[ComponentConfig, ...]:
    entries: Any = config_dict.get(key, [])
    return tuple(ComponentConfig.from_dict(entry) for entry in entries)
