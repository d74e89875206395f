"""
Count normalization and variance-stabilizing transform.

Both stages delegate to pydeseq2: median-of-ratios size factors for the
normalized counts, and DESeq2's VST for visualization.
"""

from __future__ import annotations
import logging
from typing import Any, TypeVar
import numpy as np

from pydeseq2.dds import DeseqDataSet
from pydeseq2.default_inference import DefaultInference
from pydeseq2.preprocessing import deseq2_norm

from .checks import check_se, check_count_assay
from .utils import deseq_inputs, with_assay, with_column_data

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


def size_factors(se: Any, assay: str = "counts") -> np.ndarray:
    """
    Compute DESeq2 median-of-ratios size factors.

    Raises:
        ValueError: If no gene has a non-zero count in every sample, which
            leaves the geometric means undefined.
    """
    check_se(se)
    check_count_assay(se, assay)
    counts = np.asarray(se.assays[assay], dtype=float)
    if not (counts > 0).all(axis=1).any():
        raise ValueError(
            "Cannot compute size factors: every gene has a zero count in at least one sample"
        )
    _, factors = deseq2_norm(counts.T)
    return np.asarray(factors, dtype=float).ravel()


def normalize_counts(se: SE, assay: str = "counts") -> SE:
    """
    Normalize counts by DESeq2 size factors.

    Stores the size factors in column_data['size_factors'] and the scaled
    counts as the 'normalized' assay.

    Example:
        >>> se = normalize_counts(se)
        >>> se.get_column_data()["size_factors"]
    """
    factors = size_factors(se, assay)
    counts = np.asarray(se.assays[assay], dtype=float)
    normalized = counts / factors[np.newaxis, :]

    logger.info(f"Normalized {counts.shape[0]} genes x {counts.shape[1]} samples")
    logger.info(
        f"Size factors: min {factors.min():.3f}, median {np.median(factors):.3f}, max {factors.max():.3f}"
    )
    se = with_column_data(se, "size_factors", factors)
    return with_assay(se, "normalized", normalized)


def variance_stabilize(
    se: SE,
    tissue_column: str = "tissue",
    blind: bool = True,
    n_cpus: int = 1,
    assay: str = "counts",
) -> SE:
    """
    Add the DESeq2 variance-stabilizing transform as the 'vst' assay.

    Args:
        se: Experiment with raw counts and a tissue column.
        tissue_column: column_data column for the design.
        blind: If True, ignore the design when fitting the dispersion trend,
            as is usual for quality assessment. Default: True.
        n_cpus: Worker count for pydeseq2 inference.
        assay: Raw count assay. Default: "counts".

    Returns:
        Experiment with a 'vst' assay (genes x samples, log2-like scale).
    """
    check_se(se)
    check_count_assay(se, assay)
    counts, metadata = deseq_inputs(se, tissue_column, assay)

    dds = DeseqDataSet(
        counts=counts,
        metadata=metadata,
        design=f"~{tissue_column}",
        inference=DefaultInference(n_cpus=n_cpus),
        quiet=True,
    )
    dds.vst(use_design=not blind)
    vst = np.asarray(dds.layers["vst_counts"], dtype=float).T

    logger.info(
        f"VST ({'blind' if blind else 'design-aware'}) on {vst.shape[0]} genes x {vst.shape[1]} samples: "
        f"range {vst.min():.2f} to {vst.max():.2f}"
    )
    return with_assay(se, "vst", vst)
