"""DESeq2 via pydeseq2: negative-binomial GLM fit and Wald-test contrasts.

Functional API:
    >>> import tissue_deg.deseq2 as deseq2
    >>> model = deseq2.fit_deseq2(se, levels=["brain", "heart", "kidney"])
    >>> res = deseq2.deseq2_results(model, ["tissue", "heart", "brain"])
    >>> contrasts = deseq2.pairwise_contrasts(model)
"""

from .fit import fit_deseq2, DESeq2Model, DESeq2FitConfig
from .results import deseq2_results, pairwise_contrasts, check_deseq2_model
from .utils import RESULT_COLUMNS, standardize_results

__all__ = [
    "fit_deseq2",
    "deseq2_results",
    "pairwise_contrasts",
    "check_deseq2_model",
    "DESeq2Model",
    "DESeq2FitConfig",
    "RESULT_COLUMNS",
    "standardize_results",
]
