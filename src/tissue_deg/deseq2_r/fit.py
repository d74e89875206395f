"""
Fit the DESeq2 negative-binomial GLM with Bioconductor DESeq2 through rpy2.

Mirrors ``tissue_deg.deseq2.fit`` so both engines are interchangeable in
the pipeline.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, TypeVar

import pandas as pd

from ..checks import check_se, check_count_assay
from ..utils import deseq_inputs
from .utils import _prep_deseq2, pandas_to_r

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


@dataclass
class DESeq2RModel:
    """Container for an R DESeqDataSet after ``DESeq()``.

    Attributes:
        sample_names: Sample names (column names) from the input SE.
        feature_names: Feature names (row names) from the input SE.
        dds: R DESeqDataSet object.
        factor: Design factor the contrasts refer to.
        levels: Factor levels; the first is the R reference level.
        metadata: Sample metadata used for fitting.
    """
    sample_names: Optional[Sequence[str]] = None
    feature_names: Optional[Sequence[str]] = None
    dds: Optional[Any] = None
    factor: str = "tissue"
    levels: Optional[Sequence[str]] = None
    metadata: Optional[pd.DataFrame] = None

    def results(self, numerator: str, denominator: str, alpha: float = 0.01) -> pd.DataFrame:
        """Run the Wald test for ``numerator`` vs ``denominator``."""
        from .results import deseq2_results_r
        return deseq2_results_r(self, [self.factor, numerator, denominator], alpha=alpha)


def fit_deseq2_r(
    se: SE,
    factor: str = "tissue",
    levels: Optional[Sequence[str]] = None,
    assay: str = "counts",
    **kwargs
) -> DESeq2RModel:
    """
    Build a DESeqDataSet with design ``~factor`` and run ``DESeq()``.

    Args:
        se: Experiment with raw counts and ``factor`` in column_data.
        factor: column_data column used as the design factor.
        levels: Factor levels; the first is the reference. Default: order
            of first appearance.
        assay: Raw count assay. Default: "counts".
        **kwargs: Additional args forwarded to ``DESeq``.

    Returns:
        DESeq2RModel: Container with the fitted R object.

    Example:
        >>> import tissue_deg.deseq2_r as deseq2_r
        >>> model = deseq2_r.fit_deseq2_r(se, levels=["brain", "heart", "kidney"])
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
    metadata[factor] = pd.Categorical(metadata[factor], categories=levels)

    ro, deseq2, _ = _prep_deseq2()

    # DESeq2 expects genes x samples
    counts_r = pandas_to_r(counts.T)
    coldata_r = pandas_to_r(metadata)

    logger.info(f"Fitting R DESeq2 (~{factor}) on {counts.shape[1]} genes x {counts.shape[0]} samples")
    dds = deseq2.DESeqDataSetFromMatrix(
        countData=counts_r,
        colData=coldata_r,
        design=ro.Formula(f"~ {factor}"),
    )
    dds = deseq2.DESeq(dds, quiet=True, **kwargs)

    return DESeq2RModel(
        sample_names=list(se.column_names),
        feature_names=list(se.row_names),
        dds=dds,
        factor=factor,
        levels=levels,
        metadata=metadata,
    )
