"""Sample-level diagnostic plots: PCA of VST values and the mean-variance relation."""

from __future__ import annotations
import logging
from typing import Any, Optional, Tuple
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from sklearn.decomposition import PCA

from .checks import check_se, check_assay_exists, check_column

logger = logging.getLogger(__name__)


def compute_pca(
    se: Any,
    assay: str = "vst",
    ntop: int = 500,
    n_components: int = 2,
    tissue_column: str = "tissue",
) -> Tuple[pd.DataFrame, np.ndarray]:
    """
    PCA on the ``ntop`` most variable genes, as DESeq2's plotPCA does.

    Args:
        se: Experiment with a transformed assay (usually 'vst').
        assay: Assay to decompose. Default: "vst".
        ntop: Number of genes with the highest row variance to use.
        n_components: Number of principal components.
        tissue_column: column_data column copied into the result.

    Returns:
        Tuple of (coordinates, explained variance ratio). Coordinates are a
        DataFrame indexed by sample with PC1..PCn and the tissue column.

    Raises:
        ValueError: If there are fewer samples than components.
    """
    check_se(se)
    check_assay_exists(se, assay)
    check_column(se.get_column_data(), tissue_column)

    values = np.asarray(se.assays[assay], dtype=float)
    n_genes, n_samples = values.shape
    if n_samples < n_components:
        raise ValueError(f"PCA needs at least {n_components} samples, got {n_samples}")

    variances = values.var(axis=1, ddof=1)
    top = np.argsort(variances)[::-1][: min(ntop, n_genes)]

    pca = PCA(n_components=n_components)
    coords = pca.fit_transform(values[top, :].T)

    out = pd.DataFrame(
        coords,
        index=pd.Index(list(se.column_names), name="sample"),
        columns=[f"PC{i + 1}" for i in range(n_components)],
    )
    out[tissue_column] = [str(t) for t in se.get_column_data()[tissue_column]]

    ratio = pca.explained_variance_ratio_
    logger.info(f"PCA on {len(top)} genes: " + ", ".join(
        f"PC{i + 1} {r:.1%}" for i, r in enumerate(ratio)
    ))
    return out, ratio


def pca_plot(
    se: Any,
    assay: str = "vst",
    ntop: int = 500,
    tissue_column: str = "tissue",
    figsize: tuple = (7, 6),
    title: str = "PCA of VST counts",
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Scatter the first two principal components, colored by tissue."""
    coords, ratio = compute_pca(se, assay=assay, ntop=ntop, tissue_column=tissue_column)

    fig, ax = plt.subplots(figsize=figsize)
    sns.scatterplot(data=coords, x="PC1", y="PC2", hue=tissue_column, s=80, ax=ax)
    ax.set_xlabel(f"PC1: {ratio[0]:.0%} variance")
    ax.set_ylabel(f"PC2: {ratio[1]:.0%} variance")
    ax.set_title(title)
    ax.grid(True, alpha=0.2, linestyle=":")
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight", facecolor="white")
        logger.info(f"Figure saved to: {save_path}")
    return fig


def mean_variance_plot(
    se: Any,
    assay: str = "normalized",
    figsize: tuple = (7, 6),
    title: str = "Mean-variance relationship",
    save_path: Optional[str] = None,
) -> plt.Figure:
    """
    Plot per-gene mean against variance on log-log axes.

    Counts following a Poisson distribution would lie on the dashed
    variance = mean line; RNA-seq counts sit above it, which is what
    the negative-binomial dispersion captures.
    """
    check_se(se)
    check_assay_exists(se, assay)

    values = np.asarray(se.assays[assay], dtype=float)
    means = values.mean(axis=1)
    variances = values.var(axis=1, ddof=1)
    keep = (means > 0) & (variances > 0)

    fig, ax = plt.subplots(figsize=figsize)
    ax.scatter(means[keep], variances[keep], s=6, alpha=0.4, color="#2c3e50", edgecolors="none")
    lo = means[keep].min() if keep.any() else 1.0
    hi = means[keep].max() if keep.any() else 10.0
    ax.plot([lo, hi], [lo, hi], color="#e74c3c", linestyle="--", linewidth=1.5, label="variance = mean")
    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlabel("Mean of normalized counts")
    ax.set_ylabel("Variance of normalized counts")
    ax.set_title(title)
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.2, linestyle=":")
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight", facecolor="white")
        logger.info(f"Figure saved to: {save_path}")
    return fig
