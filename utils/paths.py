"""
Path utilities for jobs.

Handles timestamped run directories and output path defaults.
"""

import os
from datetime import datetime
from typing import Optional


def create_timestamped_run_dir(base_output_dir: str, run_name: Optional[str] = None) -> str:
    """
    Create a timestamped directory for the current job.

    Example:
        create_timestamped_run_dir("./output", "zmumu")
        -> "./output/zmumu_20260216_211730"
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    dir_name = f"{run_name}_{timestamp}" if run_name else f"run_{timestamp}"

    run_dir = os.path.join(base_output_dir, dir_name)
    os.makedirs(run_dir, exist_ok=True)
    return run_dir


def update_config_paths_with_run_dir(config_dict: dict, run_dir: str) -> dict:
    """
    Point the output section of a config at the run directory.

    A relative (or missing) ``output.output_dir`` is replaced with
    *run_dir*; an absolute one is left untouched.

    Args:
        config_dict: Configuration dictionary
        run_dir: Run directory path

    Returns:
        Updated configuration dictionary
    """
    updated_config = config_dict.copy()
    output = dict(updated_config.get("output") or {})
    if "output_dir" not in output or not os.path.isabs(output["output_dir"]):
        output["output_dir"] = run_dir
    updated_config["output"] = output
    return updated_config
