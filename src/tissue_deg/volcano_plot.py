"""Create a volcano plot from a DESeq2 contrast."""

import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def volcano_plot(
    results: pd.DataFrame,
    logfc_col: str = "log2FoldChange",
    padj_col: str = "padj",
    padj_threshold: float = 0.01,
    logfc_threshold: float = 3.0,
    figsize: tuple = (10, 8),
    title: str = "Volcano Plot",
    xlabel: str = "log₂(Fold Change)",
    ylabel: str = "-log₁₀(Adjusted p-value)",
    save_path: str = None,
    **kwargs
) -> plt.Figure:
    """
    Create a volcano plot of one contrast.

    Genes with a missing adjusted p-value (filtered by DESeq2) are left out.

    Args:
        results: DataFrame with DESeq2 results
        logfc_col: Column name for log2 fold change (default: "log2FoldChange")
        padj_col: Column name for adjusted p-value (default: "padj")
        padj_threshold: Significance threshold (default: 0.01)
        logfc_threshold: Absolute log2 fold change threshold (default: 3.0)
        figsize: Figure size tuple (default: (10, 8))
        title: Plot title
        xlabel: X-axis label
        ylabel: Y-axis label
        save_path: Path to save figure (optional)
        **kwargs: Additional arguments for customization
            - point_size: Size of points (default: 20)
            - up_color: Color for up-regulated points (default: '#e74c3c' - red)
            - down_color: Color for down-regulated points (default: '#3498db' - blue)
            - nonsig_color: Color for non-significant points (default: '#95a5a6' - gray)
            - alpha: Transparency (default: 0.7)
            - dpi: DPI for saved figure (default: 300)

    Returns:
        matplotlib.figure.Figure: The figure object

    Examples:
        >>> fig = volcano_plot(contrasts[("brain", "heart")], title="brain vs heart")
    """
    point_size = kwargs.get('point_size', 20)
    up_color = kwargs.get('up_color', '#e74c3c')
    down_color = kwargs.get('down_color', '#3498db')
    nonsig_color = kwargs.get('nonsig_color', '#95a5a6')
    text_color = kwargs.get('text_color', '#2c3e50')
    alpha = kwargs.get('alpha', 0.7)
    dpi = kwargs.get('dpi', 300)

    df = results.dropna(subset=[logfc_col, padj_col]).copy()

    # padj of exactly 0 would map to infinity
    floor = np.nextafter(0, 1)
    df['-log10(padj)'] = -np.log10(df[padj_col].clip(lower=floor))

    sig_mask = (df[padj_col] < padj_threshold) & (np.abs(df[logfc_col]) > logfc_threshold)
    up_mask = sig_mask & (df[logfc_col] > 0)
    down_mask = sig_mask & (df[logfc_col] < 0)

    fig, ax = plt.subplots(figsize=figsize, dpi=100)

    non_sig = df[~sig_mask]
    ax.scatter(
        non_sig[logfc_col],
        non_sig['-log10(padj)'],
        s=point_size,
        color=nonsig_color,
        alpha=alpha * 0.5,
        edgecolors='none',
        label='Not significant',
        zorder=1
    )
    for mask, color, label in (
        (up_mask, up_color, 'Up'),
        (down_mask, down_color, 'Down'),
    ):
        sub = df[mask]
        ax.scatter(
            sub[logfc_col],
            sub['-log10(padj)'],
            s=point_size * 1.3,
            color=color,
            alpha=alpha,
            edgecolors='white',
            linewidth=0.5,
            label=f'{label} ({int(mask.sum())})',
            zorder=2
        )

    ax.axvline(-logfc_threshold, color='#34495e', linestyle='--', linewidth=1.2, alpha=0.6, zorder=0)
    ax.axvline(logfc_threshold, color='#34495e', linestyle='--', linewidth=1.2, alpha=0.6, zorder=0)
    ax.axhline(-np.log10(padj_threshold), color='#34495e', linestyle='--', linewidth=1.2, alpha=0.6, zorder=0)

    ax.set_xlabel(xlabel, fontsize=13, fontweight='bold', color=text_color)
    ax.set_ylabel(ylabel, fontsize=13, fontweight='bold', color=text_color)
    ax.set_title(title, fontsize=15, fontweight='bold', color=text_color, pad=20)
    ax.grid(True, alpha=0.2, linestyle=':', linewidth=0.8)
    ax.set_axisbelow(True)
    ax.legend(loc='upper right', frameon=True, fontsize=10, framealpha=0.95)

    stats_text = f'Significant: {int(sig_mask.sum())}/{len(df)}\n'
    stats_text += f'padj < {padj_threshold}, |log2FC| > {logfc_threshold}'
    ax.text(
        0.02, 0.98,
        stats_text,
        transform=ax.transAxes,
        fontsize=10,
        verticalalignment='top',
        bbox=dict(boxstyle='round', facecolor='white', alpha=0.85, edgecolor=text_color),
        family='monospace',
        color=text_color
    )

    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=dpi, bbox_inches='tight', facecolor='white')
        logger.info(f"Figure saved to: {save_path}")

    return fig
