"""Wald tests for tissue contrasts using ``DESeq2::results``."""

from __future__ import annotations
import logging
from typing import Dict, Optional, Sequence, Tuple

import pandas as pd

from ..checks import check_contrast
from ..config import contrast_pairs
from ..deseq2.utils import standardize_results
from .fit import DESeq2RModel
from .utils import _prep_deseq2, r_to_pandas

logger = logging.getLogger(__name__)


def check_deseq2_r_model(model: DESeq2RModel) -> None:
    """Check that input is a fitted DESeq2RModel."""
    if not isinstance(model, DESeq2RModel):
        raise TypeError(f"Expected a DESeq2RModel, got {type(model).__name__}")
    if model.dds is None:
        raise ValueError("DESeq2RModel.dds is None - model has not been fitted")


def deseq2_results_r(
    model: DESeq2RModel,
    contrast: Sequence[str],
    alpha: float = 0.01,
) -> pd.DataFrame:
    """
    Extract one contrast with ``DESeq2::results``.

    Args:
        model: DESeq2RModel from fit_deseq2_r().
        contrast: ``[factor, numerator, denominator]``.
        alpha: Significance level used by independent filtering.

    Returns:
        pd.DataFrame: Results indexed by gene_id with the standard columns.
    """
    check_deseq2_r_model(model)
    if len(contrast) != 3:
        raise ValueError(f"Contrast must be [factor, numerator, denominator], got {list(contrast)}")
    factor, numerator, denominator = (str(c) for c in contrast)
    if factor != model.factor:
        raise ValueError(f"Model was fitted on '{model.factor}', not '{factor}'")
    check_contrast(model.levels, numerator, denominator)

    ro, deseq2, base = _prep_deseq2()
    res = deseq2.results(
        model.dds,
        contrast=ro.StrVector([factor, numerator, denominator]),
        alpha=alpha,
    )
    df = r_to_pandas(base.as_data_frame(res))

    # as.data.frame keeps gene ids as row names, in input order
    res = standardize_results(df, feature_names=model.feature_names)
    logger.info(
        f"{numerator} vs {denominator}: {len(res)} genes x {len(model.sample_names)} samples tested, "
        f"{int(res['padj'].notna().sum())} with an adjusted p-value"
    )
    return res


def pairwise_contrasts_r(
    model: DESeq2RModel,
    levels: Optional[Sequence[str]] = None,
    alpha: float = 0.01,
) -> Dict[Tuple[str, str], pd.DataFrame]:
    """Test every unordered pair of levels, keyed by ``(numerator, denominator)``."""
    check_deseq2_r_model(model)
    levels = list(levels) if levels is not None else list(model.levels)
    return {
        (a, b): deseq2_results_r(model, [model.factor, a, b], alpha=alpha)
        for a, b in contrast_pairs(levels)
    }
