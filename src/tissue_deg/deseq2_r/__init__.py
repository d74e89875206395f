"""DESeq2 through R: the Bioconductor implementation driven via rpy2.

Importing this module checks that the R package DESeq2 is installed and
installs it via BiocManager otherwise.

Functional API:
    >>> import tissue_deg.deseq2_r as deseq2_r
    >>> model = deseq2_r.fit_deseq2_r(se, levels=["brain", "heart", "kidney"])
    >>> contrasts = deseq2_r.pairwise_contrasts_r(model)
"""

# Check/install DESeq2 R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["DESeq2"])

from .fit import fit_deseq2_r, DESeq2RModel
from .results import deseq2_results_r, pairwise_contrasts_r, check_deseq2_r_model
from .utils import _prep_deseq2

__all__ = [
    "fit_deseq2_r",
    "deseq2_results_r",
    "pairwise_contrasts_r",
    "check_deseq2_r_model",
    "DESeq2RModel",
    "_prep_deseq2",
]
