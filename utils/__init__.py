"""
Utility modules for jobs.
"""

from .batching import batch_bounds, slice_input_files
from .paths import create_timestamped_run_dir, update_config_paths_with_run_dir

__all__ = [
    "batch_bounds",
    "slice_input_files",
    "create_timestamped_run_dir",
    "update_config_paths_with_run_dir",
]
