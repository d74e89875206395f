"""
The tissue differential-expression pipeline.

Stages run in a fixed order:

    load -> per-tissue quality filter -> merge -> expression filter ->
    metadata -> normalize -> VST -> diagnostics -> DESeq2 fit ->
    pairwise contrasts -> symbol annotation -> up/down intersection

Usage:
    >>> from tissue_deg import PipelineConfig, run_pipeline, save_results
    >>> config = PipelineConfig.from_json("config.json")
    >>> result = run_pipeline(config)
    >>> save_results(result, "results/")
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import matplotlib.pyplot as plt
import pandas as pd
from summarizedexperiment import SummarizedExperiment

from .annotate import annotate_results, map_symbols
from .config import PipelineConfig
from .deseq2 import fit_deseq2, pairwise_contrasts
from .diagnostics import mean_variance_plot, pca_plot
from .filters import expression_filter, quality_filter
from .loading import build_metadata, experiment_to_frame, merge_tissues, read_count_table
from .normalize import normalize_counts, variance_stabilize
from .regulation import RegulatedGenes, regulation_table, significant, tissue_regulation
from .utils import with_row_data
from .volcano_plot import volcano_plot

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything a pipeline run produces.

    Attributes:
        experiment: Filtered, merged experiment with 'counts', 'normalized'
            and 'vst' assays and 'symbol' in row_data.
        metadata: Sample metadata (index sample, column tissue).
        model: Fitted DESeq2 model (either engine).
        contrasts: Annotated results keyed by (numerator, denominator).
        regulation: Up/down-regulated gene sets per tissue.
        symbols: Gene id to symbol mapping (NaN where unmapped).
        figures: Named matplotlib figures.
        config: The configuration the run used.
    """
    experiment: SummarizedExperiment
    metadata: pd.DataFrame
    model: Any
    contrasts: Dict[Tuple[str, str], pd.DataFrame]
    regulation: Dict[str, RegulatedGenes]
    symbols: pd.Series
    figures: Dict[str, plt.Figure] = field(default_factory=dict)
    config: Optional[PipelineConfig] = None

    def regulation_table(self) -> pd.DataFrame:
        return regulation_table(self.regulation, self.symbols)


def load_experiments(config: PipelineConfig) -> SummarizedExperiment:
    """Load every tissue, apply the per-tissue quality filter and merge."""
    experiments = []
    for tissue in config.tissues:
        se = read_count_table(config.count_files[tissue], tissue=tissue)
        se = quality_filter(se, min_length=config.min_length, excluded=config.excluded_chromosomes)
        experiments.append(se)
    merged = merge_tissues(experiments)
    return expression_filter(
        merged,
        min_total_count=config.min_total_count,
        min_library_size=config.min_library_size,
    )


def fit_model(se: SummarizedExperiment, config: PipelineConfig):
    """Fit DESeq2 with the configured engine and extract all pairwise contrasts."""
    if config.engine == "r":
        from . import deseq2_r
        model = deseq2_r.fit_deseq2_r(se, levels=config.tissues)
        contrasts = deseq2_r.pairwise_contrasts_r(model, alpha=config.padj_threshold)
    else:
        model = fit_deseq2(se, levels=config.tissues, n_cpus=config.n_cpus)
        contrasts = pairwise_contrasts(model, alpha=config.padj_threshold)
    return model, contrasts


def run_pipeline(config: PipelineConfig, make_figures: bool = True) -> PipelineResult:
    """
    Run the full pipeline.

    Args:
        config: Validated or unvalidated configuration.
        make_figures: Draw PCA, mean-variance and volcano plots. Default: True.

    Returns:
        PipelineResult with the experiment, model, contrasts and gene sets.
    """
    config.validate()
    logger.info(f"Running pipeline for tissues {list(config.tissues)} with engine '{config.engine}'")

    se = load_experiments(config)
    metadata = build_metadata(se, tissues=config.tissues)

    se = normalize_counts(se)
    se = variance_stabilize(se, n_cpus=config.n_cpus)

    figures: Dict[str, plt.Figure] = {}
    if make_figures:
        figures["pca"] = pca_plot(se, ntop=config.ntop)
        figures["mean_variance"] = mean_variance_plot(se)

    model, contrasts = fit_model(se, config)

    symbols = map_symbols(se.row_names, source=config.symbol_source, species=config.species)
    se = with_row_data(se, "symbol", symbols.tolist())
    contrasts = {key: annotate_results(res, symbols) for key, res in contrasts.items()}

    for (a, b), res in contrasts.items():
        n_sig = int(significant(res, config.lfc_threshold, config.padj_threshold).sum())
        logger.info(f"{a} vs {b}: {n_sig} significant genes "
                    f"(|log2FC| > {config.lfc_threshold}, padj < {config.padj_threshold})")
        if make_figures:
            figures[f"volcano_{a}_vs_{b}"] = volcano_plot(
                res,
                padj_threshold=config.padj_threshold,
                logfc_threshold=config.lfc_threshold,
                title=f"{a} vs {b}",
            )

    regulation = tissue_regulation(
        contrasts,
        config.tissues,
        lfc_threshold=config.lfc_threshold,
        padj_threshold=config.padj_threshold,
    )

    return PipelineResult(
        experiment=se,
        metadata=metadata,
        model=model,
        contrasts=contrasts,
        regulation=regulation,
        symbols=symbols,
        figures=figures,
        config=config,
    )


def save_results(result: PipelineResult, output_dir: Union[str, Path]) -> Dict[str, Path]:
    """
    Write tables and figures for a pipeline run.

    Returns:
        Dict mapping a short name to each written path.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}

    def _csv(df: pd.DataFrame, name: str, index: bool = True) -> None:
        path = output_dir / f"{name}.csv"
        df.to_csv(path, index=index)
        written[name] = path
        logger.info(f"Saved {path.name}: {len(df)} rows")

    se = result.experiment
    _csv(experiment_to_frame(se, "normalized").rename_axis("gene_id"), "normalized_counts")
    _csv(experiment_to_frame(se, "vst").rename_axis("gene_id"), "vst_counts")
    _csv(result.metadata, "sample_metadata")

    cfg = result.config or PipelineConfig()
    for (a, b), res in result.contrasts.items():
        name = f"deseq2_{a}_vs_{b}"
        _csv(res, name)
        sig = res[significant(res, cfg.lfc_threshold, cfg.padj_threshold)]
        _csv(sig.sort_values("padj"), f"{name}_significant")

    _csv(result.regulation_table(), "tissue_regulation", index=False)

    for name, fig in result.figures.items():
        path = output_dir / f"{name}.png"
        fig.savefig(path, dpi=150, bbox_inches="tight", facecolor="white")
        written[name] = path

    if result.config is not None:
        path = output_dir / "config_used.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result.config.to_dict(), f, indent=2)
        written["config"] = path

    logger.info(f"Wrote {len(written)} files to {output_dir}")
    return written
