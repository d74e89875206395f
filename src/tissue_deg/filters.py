"""
Gene and sample quality filters.

The ``*_mask`` functions return boolean numpy masks and do NOT modify the
experiment; use ``subset_genes``/``subset_samples`` (or the combined
``quality_filter``/``expression_filter``) to apply them.

Example:
    >>> mask = length_mask(se, min_length=200) & mitochondrial_mask(se)
    >>> se = subset_genes(se, mask)
"""

from __future__ import annotations
import logging
from typing import Any, Sequence, TypeVar
import numpy as np

from .checks import check_se, check_assay_exists, check_column
from .config import MITOCHONDRIAL_CHROMOSOMES

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


def length_mask(se: Any, min_length: float = 200) -> np.ndarray:
    """Keep genes whose annotated length is at least ``min_length`` bp."""
    check_se(se)
    rowdata = se.get_row_data()
    check_column(rowdata, "length", where="row_data")
    lengths = np.asarray(rowdata["length"], dtype=float)
    return lengths >= min_length


def mitochondrial_mask(
    se: Any,
    excluded: Sequence[str] = MITOCHONDRIAL_CHROMOSOMES,
) -> np.ndarray:
    """Keep genes that are NOT on an excluded (mitochondrial) chromosome."""
    check_se(se)
    rowdata = se.get_row_data()
    check_column(rowdata, "chromosome", where="row_data")
    excluded = set(excluded)
    return np.asarray([str(c) not in excluded for c in rowdata["chromosome"]], dtype=bool)


def count_mask(se: Any, min_total_count: float = 5, assay: str = "counts") -> np.ndarray:
    """Keep genes whose count summed over all samples is at least ``min_total_count``."""
    check_se(se)
    check_assay_exists(se, assay)
    counts = np.asarray(se.assays[assay], dtype=float)
    return counts.sum(axis=1) >= min_total_count


def library_size_mask(se: Any, min_library_size: float = 1, assay: str = "counts") -> np.ndarray:
    """Keep samples whose total count is at least ``min_library_size``."""
    check_se(se)
    check_assay_exists(se, assay)
    counts = np.asarray(se.assays[assay], dtype=float)
    return counts.sum(axis=0) >= min_library_size


def subset_genes(se: SE, mask: np.ndarray) -> SE:
    """Subset rows with a boolean mask."""
    mask = np.asarray(mask, dtype=bool)
    if mask.shape[0] != se.shape[0]:
        raise ValueError(f"Mask has {mask.shape[0]} entries but experiment has {se.shape[0]} genes")
    return se[np.flatnonzero(mask).tolist(), :]


def subset_samples(se: SE, mask: np.ndarray) -> SE:
    """Subset columns with a boolean mask."""
    mask = np.asarray(mask, dtype=bool)
    if mask.shape[0] != se.shape[1]:
        raise ValueError(f"Mask has {mask.shape[0]} entries but experiment has {se.shape[1]} samples")
    return se[:, np.flatnonzero(mask).tolist()]


def quality_filter(
    se: SE,
    min_length: float = 200,
    excluded: Sequence[str] = MITOCHONDRIAL_CHROMOSOMES,
) -> SE:
    """
    Drop short transcripts and mitochondrial genes.

    Applied per tissue, before merging.

    Args:
        se: Experiment with 'length' and 'chromosome' in row_data.
        min_length: Minimum gene length in bp. Default: 200.
        excluded: Chromosome names treated as mitochondrial.

    Returns:
        The filtered experiment.
    """
    short = ~length_mask(se, min_length)
    mito = ~mitochondrial_mask(se, excluded)
    keep = ~(short | mito)
    logger.info(
        f"Quality filter: {int(short.sum())} genes < {min_length} bp, "
        f"{int(mito.sum())} mitochondrial genes; {int(keep.sum())}/{keep.size} kept"
    )
    return subset_genes(se, keep)


def expression_filter(
    se: SE,
    min_total_count: float = 5,
    min_library_size: float = 1,
) -> SE:
    """
    Drop empty samples, then genes with too few reads overall.

    Applied to the merged experiment.

    Raises:
        ValueError: If every sample or every gene is removed.
    """
    samples = library_size_mask(se, min_library_size)
    if not samples.any():
        raise ValueError(f"No sample has a library size of at least {min_library_size}")
    if not samples.all():
        dropped = [s for s, k in zip(se.column_names, samples) if not k]
        logger.warning(f"Dropping {len(dropped)} samples below library size {min_library_size}: {dropped}")
        se = subset_samples(se, samples)

    genes = count_mask(se, min_total_count)
    if not genes.any():
        raise ValueError(f"No gene has a total count of at least {min_total_count}")
    logger.info(f"Count filter (sum >= {min_total_count}): {int(genes.sum())}/{genes.size} genes kept")
    return subset_genes(se, genes)
