"""
Split a job's input files across batch array jobs.

Batch indices are 1-based, matching scheduler array indices. Reconstructed
and truth files are sliced with the same bounds so each batch keeps its
reco/truth pairs together.
"""

import logging
from dataclasses import replace

from domain.config import InputConfig
from domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


def batch_bounds(n_files: int, batch_index: int, total_batches: int) -> tuple[int, int]:
    """
    File index range [start, end) handled by one batch.

    The first ``n_files % total_batches`` batches take one extra file, so
    batch sizes differ by at most one.
    """
    if total_batches < 1:
        raise ConfigurationError(f"total_batches must be positive, got {total_batches}")
    if not 1 <= batch_index <= total_batches:
        raise ConfigurationError(f"batch_index must be 1..{total_batches}, got {batch_index}")

    size, extra = divmod(n_files, total_batches)
    position = batch_index - 1
    start = position * size + min(position, extra)
    end = start + size + (1 if position < extra else 0)
    return start, end


def slice_input_files(input_config: InputConfig, batch_index: int, total_batches: int) -> InputConfig:
    """
    Restrict an input configuration to the files of one batch.

    Args:
        input_config: Full input configuration
        batch_index: This job's index (1-based)
        total_batches: Total number of batch jobs

    Returns:
        InputConfig holding only this batch's files (and their truth partners)

    Raises:
        ConfigurationError: If the index is out of range or the batch has no files
    """
    batch_index = int(batch_index)
    total_batches = int(total_batches)
    start, end = batch_bounds(len(input_config.files), batch_index, total_batches)
    if start == end:
        raise ConfigurationError(
            f"Batch {batch_index}/{total_batches} has no input files "
            f"({len(input_config.files)} files in total)"
        )

    logger.debug(
        f"Batch {batch_index}/{total_batches}: files[{start}:{end}] "
        f"of {len(input_config.files)}"
    )
    return replace(
        input_config,
        files=input_config.files[start:end],
        truth_files=input_config.truth_files[start:end],
    )
