"""
Wald tests for tissue contrasts using pydeseq2's DeseqStats.

This module provides a functional interface to extract a contrast from a
DESeq2Model and return results as a pandas DataFrame.
"""

from __future__ import annotations
import logging
from typing import Dict, Optional, Sequence, Tuple

import pandas as pd
from pydeseq2.default_inference import DefaultInference
from pydeseq2.ds import DeseqStats

from ..checks import check_contrast
from ..config import contrast_pairs
from .fit import DESeq2Model
from .utils import standardize_results

logger = logging.getLogger(__name__)


def check_deseq2_model(model: DESeq2Model) -> None:
    """Check that input is a fitted DESeq2Model."""
    if not isinstance(model, DESeq2Model):
        raise TypeError(f"Expected a DESeq2Model, got {type(model).__name__}")
    if model.dds is None:
        raise ValueError("DESeq2Model.dds is None - model has not been fitted")


def deseq2_results(
    model: DESeq2Model,
    contrast: Sequence[str],
    alpha: float = 0.01,
    cooks_filter: bool = True,
    independent_filter: bool = True,
) -> pd.DataFrame:
    """
    Run the Wald test for one contrast.

    Args:
        model: DESeq2Model from fit_deseq2().
        contrast: ``[factor, numerator, denominator]``. log2FoldChange is
            log2(numerator / denominator).
        alpha: Significance level used by independent filtering.
        cooks_filter: Set p-values of Cook's outliers to NaN. Default: True.
        independent_filter: Apply DESeq2's independent filtering. Default: True.

    Returns:
        pd.DataFrame: Results indexed by gene_id with columns baseMean,
        log2FoldChange, lfcSE, stat, pvalue, padj.

    Raises:
        TypeError: If model is not a DESeq2Model.
        ValueError: If the contrast is malformed or names unknown levels.

    Example:
        >>> res = deseq2_results(model, ["tissue", "heart", "brain"])
        >>> res[res["padj"] < 0.01]
    """
    check_deseq2_model(model)
    if len(contrast) != 3:
        raise ValueError(f"Contrast must be [factor, numerator, denominator], got {list(contrast)}")
    factor, numerator, denominator = (str(c) for c in contrast)
    if factor != model.factor:
        raise ValueError(f"Model was fitted on '{model.factor}', not '{factor}'")
    check_contrast(model.levels, numerator, denominator)

    n_cpus = model.fit_config.n_cpus if model.fit_config is not None else 1
    stats = DeseqStats(
        model.dds,
        contrast=[factor, numerator, denominator],
        alpha=alpha,
        cooks_filter=cooks_filter,
        independent_filter=independent_filter,
        inference=DefaultInference(n_cpus=n_cpus),
        quiet=True,
    )
    stats.summary()

    res = standardize_results(stats.results_df)
    n_tested = int(res["padj"].notna().sum())
    logger.info(
        f"{numerator} vs {denominator}: {len(res)} genes x {len(model.sample_names)} samples tested, "
        f"{n_tested} with an adjusted p-value"
    )
    return res


def pairwise_contrasts(
    model: DESeq2Model,
    levels: Optional[Sequence[str]] = None,
    alpha: float = 0.01,
) -> Dict[Tuple[str, str], pd.DataFrame]:
    """
    Test every unordered pair of levels.

    Pairs follow the level order: for (brain, heart, kidney) the contrasts
    are brain vs heart, brain vs kidney and heart vs kidney.

    Returns:
        Dict keyed by ``(numerator, denominator)``.
    """
    check_deseq2_model(model)
    levels = list(levels) if levels is not None else list(model.levels)
    return {
        (a, b): deseq2_results(model, [model.factor, a, b], alpha=alpha)
        for a, b in contrast_pairs(levels)
    }
