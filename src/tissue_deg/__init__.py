"""tissue_deg: DESeq2 differential expression between brain, heart and kidney.

This package loads per-tissue gene counts into BiocPy SummarizedExperiments,
filters and normalizes them, fits DESeq2 (pydeseq2, or Bioconductor DESeq2
through rpy2) and intersects pairwise contrasts into tissue-specific
up/down-regulated gene sets.

The R engine is loaded lazily to avoid R dependency checks until needed.

Usage:
    >>> from tissue_deg import PipelineConfig, run_pipeline
    >>> result = run_pipeline(PipelineConfig.from_json("config.json"))
    >>> result.regulation["brain"].up
    >>>
    >>> import tissue_deg.deseq2_r  # NOW DESeq2 in R is checked/installed
"""

from __future__ import annotations

import importlib

from .config import PipelineConfig, DEFAULT_TISSUES, MITOCHONDRIAL_CHROMOSOMES, contrast_pairs
from .loading import read_count_table, merge_tissues, build_metadata, experiment_to_frame
from .filters import (
    length_mask,
    mitochondrial_mask,
    count_mask,
    library_size_mask,
    subset_genes,
    subset_samples,
    quality_filter,
    expression_filter,
)
from .normalize import size_factors, normalize_counts, variance_stabilize
from .diagnostics import compute_pca, pca_plot, mean_variance_plot
from .volcano_plot import volcano_plot
from .annotate import strip_version, load_symbol_table, query_mygene, map_symbols, annotate_results
from .regulation import (
    RegulatedGenes,
    significant,
    split_regulated,
    tissue_regulation,
    regulation_table,
)
from .pipeline import PipelineResult, run_pipeline, save_results
from . import deseq2

__all__ = [
    "PipelineConfig",
    "DEFAULT_TISSUES",
    "MITOCHONDRIAL_CHROMOSOMES",
    "contrast_pairs",
    "read_count_table",
    "merge_tissues",
    "build_metadata",
    "experiment_to_frame",
    "length_mask",
    "mitochondrial_mask",
    "count_mask",
    "library_size_mask",
    "subset_genes",
    "subset_samples",
    "quality_filter",
    "expression_filter",
    "size_factors",
    "normalize_counts",
    "variance_stabilize",
    "compute_pca",
    "pca_plot",
    "mean_variance_plot",
    "volcano_plot",
    "strip_version",
    "load_symbol_table",
    "query_mygene",
    "map_symbols",
    "annotate_results",
    "RegulatedGenes",
    "significant",
    "split_regulated",
    "tissue_regulation",
    "regulation_table",
    "PipelineResult",
    "run_pipeline",
    "save_results",
    "deseq2",
    # Lazy-loaded submodules
    "deseq2_r",
]

# Submodules to be lazily loaded
_LAZY_SUBMODULES = {"deseq2_r"}


def __getattr__(name: str):
    """Lazy loading of submodules per PEP 562."""
    if name in _LAZY_SUBMODULES:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    """Include lazy submodules in dir() output."""
    return list(__all__)
