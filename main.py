#!/usr/bin/env python3
"""
Main entry point for the module-graph event pipeline.

Supports:
  - Single-job execution (default)
  - Batch job execution via --batch-job-index / --total-batch-jobs
  - Shared run directory via --run-dir
  - Configuration check via --dry-run (validates config and module graph)

Each job reads its input files, drives every event through the module
graph, then writes histograms and cutflow tables to a ROOT file plus a
JSON stats file and a text cutflow/fill report.
"""

import sys
import os
import logging
import argparse
import yaml

from domain.config import JobConfig
from domain.errors import ConfigurationError
from pipeline.executor import JobExecutor
from utils.paths import create_timestamped_run_dir, update_config_paths_with_run_dir


def setup_logging(level: str = "INFO"):
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Module-graph event pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single job with the default config
  python main.py

  # Custom config, first 1000 events only
  python main.py --config zmumu.yaml --max-events 1000

  # Batch array job on its slice of the input files
  python main.py --batch-job-index 1 --total-batch-jobs 4 --run-dir ./output/run_1

  # Validate config and module graph without reading events
  python main.py --dry-run
        """
    )

    parser.add_argument(
        "--config", type=str, default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Validate configuration and module graph without processing events"
    )
    parser.add_argument(
        "--max-events", type=int, default=None,
        help="Stop after this many events"
    )
    parser.add_argument(
        "--run-dir", type=str, default=None,
        help="Output directory (skips timestamped dir creation)"
    )

    batch_group = parser.add_argument_group("Batch Job Options")
    batch_group.add_argument(
        "--batch-job-index", type=int, default=None,
        help="This job's index (1-based, matching PBS $PBS_ARRAY_INDEX)"
    )
    batch_group.add_argument(
        "--total-batch-jobs", type=int, default=None,
        help="Total number of batch jobs"
    )

    args = parser.parse_args(argv)

    if args.batch_job_index is not None and args.total_batch_jobs is None:
        parser.error("--total-batch-jobs is required when --batch-job-index is set")
    if args.total_batch_jobs is not None and args.batch_job_index is None:
        parser.error("--batch-job-index is required when --total-batch-jobs is set")

    return args


def apply_overrides(config_dict: dict, args) -> dict:
    """Inject CLI values into the config dict (override YAML values)."""
    config_dict = dict(config_dict)
    run_metadata = dict(config_dict.get("run_metadata") or {})
    if args.batch_job_index is not None:
        run_metadata["batch_job_index"] = args.batch_job_index
        run_metadata["total_batch_jobs"] = args.total_batch_jobs
    config_dict["run_metadata"] = run_metadata

    if args.max_events is not None:
        input_dict = dict(config_dict.get("input") or {})
        input_dict["max_events"] = args.max_events
        config_dict["input"] = input_dict

    if args.batch_job_index is not None:
        output = dict(config_dict.get("output") or {})
        output["output_filename"] = f"batch_{args.batch_job_index}.root"
        output["stats_filename"] = f"batch_{args.batch_job_index}_stats.json"
        output["report_filename"] = f"batch_{args.batch_job_index}_cutflow.txt"
        config_dict["output"] = output
    return config_dict


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info("Module-graph event pipeline")
    logger.info("=" * 60)

    try:
        logger.info(f"Loading configuration from: {args.config}")
        config_dict = apply_overrides(load_config(args.config), args)

        if args.run_dir:
            run_dir = args.run_dir
            os.makedirs(run_dir, exist_ok=True)
            logger.info(f"Using run directory: {run_dir}")
        else:
            run_metadata = config_dict.get("run_metadata", {})
            run_name = run_metadata.get("run_name", "module_job")
            base_output = run_metadata.get("base_output_dir", "./output")
            run_dir = create_timestamped_run_dir(base_output, run_name)
            logger.info(f"Created timestamped run directory: {run_dir}")

        config_dict = update_config_paths_with_run_dir(config_dict, run_dir)
        config = JobConfig.from_dict(config_dict)

        executor = JobExecutor.from_config(config)
        executor.prepare()
        logger.info("Configuration loaded and module graph validated successfully")

        if args.dry_run:
            logger.info("Dry run mode - configuration is valid, exiting")
            logger.info(f"Module order: {[m.name for m in executor.modules]}")
            return 0

        source = JobExecutor.build_source(
            config.input, config.batch_job_index, config.total_batch_jobs
        )
        final_context = executor.run(source)
        executor.save_reports(
            config.output.output_dir,
            final_context,
            stats_filename=config.output.stats_filename,
            report_filename=config.output.report_filename,
        )

        if final_context.is_successful:
            logger.info("✓ Job completed successfully")
            return 0
        logger.error(
            f"✗ Job ended in state {final_context.current_state}: "
            f"{final_context.abort_message or final_context.error_message}"
        )
        return 1

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
