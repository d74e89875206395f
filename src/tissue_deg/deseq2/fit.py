"""
Fit the DESeq2 negative-binomial GLM with pydeseq2.

This module provides the DESeq2Model dataclass for storing fit results
and the fit_deseq2 function for fitting the model.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, TypeVar

import pandas as pd
from pydeseq2.dds import DeseqDataSet
from pydeseq2.default_inference import DefaultInference

from ..checks import check_se, check_count_assay
from ..utils import deseq_inputs

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


@dataclass
class DESeq2FitConfig:
    """Configuration used for DESeq2 fitting."""
    design: str = "~tissue"
    refit_cooks: bool = True
    n_cpus: int = 1
    assay: str = "counts"
    user_kwargs: Optional[Dict[str, Any]] = None


@dataclass
class DESeq2Model:
    """Container for a fitted DESeq2 dataset.

    Use with deseq2_results() or pairwise_contrasts() for Wald tests.

    Attributes:
        sample_names: Sample names (column names) from the input SE.
        feature_names: Feature names (row names) from the input SE.
        dds: Fitted pydeseq2 DeseqDataSet.
        factor: Design factor the contrasts refer to.
        levels: Levels of the design factor, in contrast order.
        metadata: Sample metadata used for fitting.
        fit_config: Configuration used for fitting.
    """
    sample_names: Optional[Sequence[str]] = None
    feature_names: Optional[Sequence[str]] = None
    dds: Optional[Any] = None
    factor: str = "tissue"
    levels: Optional[Sequence[str]] = None
    metadata: Optional[pd.DataFrame] = None
    fit_config: Optional[DESeq2FitConfig] = None

    def results(self, numerator: str, denominator: str, alpha: float = 0.01) -> pd.DataFrame:
        """
        Run the Wald test for ``numerator`` vs ``denominator``.

        Convenience method that delegates to the deseq2_results function.

        Example:
            >>> model = fit_deseq2(se)
            >>> res = model.results("heart", "brain")
        """
        from .results import deseq2_results
        return deseq2_results(self, [self.factor, numerator, denominator], alpha=alpha)


def fit_deseq2(
    se: SE,
    factor: str = "tissue",
    levels: Optional[Sequence[str]] = None,
    n_cpus: int = 1,
    refit_cooks: bool = True,
    assay: str = "counts",
    **kwargs
) -> DESeq2Model:
    """
    Fit size factors, negative-binomial dispersions and the GLM.

    Wraps ``DeseqDataSet.deseq2`` with the design ``~factor``.

    Args:
        se: Experiment with raw counts and ``factor`` in column_data.
        factor: column_data column used as the single design factor.
        levels: Level order used for pairwise contrasts. Default: order of
            first appearance.
        n_cpus: Worker count for pydeseq2 inference. Default: 1.
        refit_cooks: Refit genes with Cook's distance outliers. Default: True.
        assay: Raw count assay. Default: "counts".
        **kwargs: Additional args forwarded to DeseqDataSet.

    Returns:
        DESeq2Model: Container with the fitted dataset.

    Raises:
        TypeError: If se lacks required attributes.
        KeyError: If the assay or factor column does not exist.
        ValueError: If the factor has fewer than two levels.

    Example:
        >>> model = fit_deseq2(se, levels=["brain", "heart", "kidney"])
        >>> res = model.results("heart", "brain")
    """
    check_se(se)
    check_count_assay(se, assay)
    counts, metadata = deseq_inputs(se, factor, assay)

    observed = list(dict.fromkeys(metadata[factor]))
    levels = list(levels) if levels is not None else observed
    absent = [lvl for lvl in observed if lvl not in levels]
    if absent:
        raise ValueError(f"Samples carry levels {absent} not in {levels}")
    levels = [lvl for lvl in levels if lvl in observed]
    if len(levels) < 2:
        raise ValueError(f"Design factor '{factor}' needs at least two levels, got {levels}")

    config = DESeq2FitConfig(
        design=f"~{factor}",
        refit_cooks=refit_cooks,
        n_cpus=n_cpus,
        assay=assay,
        user_kwargs=kwargs if kwargs else None,
    )

    logger.info(f"Fitting DESeq2 ({config.design}) on {counts.shape[1]} genes x {counts.shape[0]} samples")
    dds = DeseqDataSet(
        counts=counts,
        metadata=metadata,
        design=config.design,
        refit_cooks=refit_cooks,
        inference=DefaultInference(n_cpus=n_cpus),
        quiet=True,
        **kwargs
    )
    dds.deseq2()

    return DESeq2Model(
        sample_names=list(se.column_names),
        feature_names=list(se.row_names),
        dds=dds,
        factor=factor,
        levels=levels,
        metadata=metadata,
        fit_config=config,
    )
