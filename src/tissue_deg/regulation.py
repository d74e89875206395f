"""
Significance calls and tissue-specific up/down-regulated gene sets.

A gene is up-regulated in tissue T when it is significantly higher in T
than in every other tissue, i.e. the intersection over all contrasts that
involve T. For a contrast (a, b), log2FoldChange is log2(a / b), so a gene
is higher in T for (T, X) when log2FC > threshold and for (X, T) when
log2FC < -threshold.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Set, Tuple
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

Contrasts = Mapping[Tuple[str, str], pd.DataFrame]


@dataclass
class RegulatedGenes:
    """Genes up- and down-regulated in one tissue against all others."""
    up: Set[str] = field(default_factory=set)
    down: Set[str] = field(default_factory=set)


def significant(
    results: pd.DataFrame,
    lfc_threshold: float = 3.0,
    padj_threshold: float = 0.01,
) -> pd.Series:
    """Boolean mask of padj < padj_threshold and |log2FoldChange| > lfc_threshold.

    Genes with a missing padj (independent filtering, outliers) are never
    significant.
    """
    padj = results["padj"]
    lfc = results["log2FoldChange"]
    mask = padj.notna() & (padj < padj_threshold) & (lfc.abs() > lfc_threshold)
    return mask.fillna(False).astype(bool)


def split_regulated(
    results: pd.DataFrame,
    lfc_threshold: float = 3.0,
    padj_threshold: float = 0.01,
) -> Tuple[Set[str], Set[str]]:
    """Return (up, down) gene id sets for one contrast."""
    sig = significant(results, lfc_threshold, padj_threshold)
    lfc = results["log2FoldChange"]
    up = set(results.index[sig & (lfc > 0)].astype(str))
    down = set(results.index[sig & (lfc < 0)].astype(str))
    return up, down


def _higher_in(
    contrasts: Contrasts,
    tissue: str,
    other: str,
    lfc_threshold: float,
    padj_threshold: float,
) -> Tuple[Set[str], Set[str]]:
    """Genes higher and lower in ``tissue`` than in ``other``."""
    if (tissue, other) in contrasts:
        up, down = split_regulated(contrasts[(tissue, other)], lfc_threshold, padj_threshold)
        return up, down
    if (other, tissue) in contrasts:
        up, down = split_regulated(contrasts[(other, tissue)], lfc_threshold, padj_threshold)
        return down, up
    raise KeyError(f"No contrast between '{tissue}' and '{other}'")


def tissue_regulation(
    contrasts: Contrasts,
    tissues: Sequence[str],
    lfc_threshold: float = 3.0,
    padj_threshold: float = 0.01,
) -> Dict[str, RegulatedGenes]:
    """
    Intersect contrasts into per-tissue up/down-regulated sets.

    Args:
        contrasts: Results keyed by (numerator, denominator).
        tissues: All tissues; every pair must have a contrast in either
            orientation.
        lfc_threshold: Absolute log2 fold change to exceed. Default: 3.
        padj_threshold: Adjusted p-value to fall below. Default: 0.01.

    Returns:
        Dict mapping tissue to RegulatedGenes.

    Raises:
        KeyError: If a tissue pair has no contrast.

    Example:
        >>> reg = tissue_regulation(contrasts, ["brain", "heart", "kidney"])
        >>> sorted(reg["brain"].up)[:5]
    """
    tissues = list(tissues)
    if len(tissues) < 2:
        raise ValueError("Need at least two tissues")

    regulation: Dict[str, RegulatedGenes] = {}
    for tissue in tissues:
        up: Optional[Set[str]] = None
        down: Optional[Set[str]] = None
        for other in tissues:
            if other == tissue:
                continue
            higher, lower = _higher_in(contrasts, tissue, other, lfc_threshold, padj_threshold)
            up = higher if up is None else up & higher
            down = lower if down is None else down & lower
        regulation[tissue] = RegulatedGenes(up=up or set(), down=down or set())
        logger.info(f"{tissue}: {len(regulation[tissue].up)} up, {len(regulation[tissue].down)} down")
    return regulation


def regulation_table(
    regulation: Mapping[str, RegulatedGenes],
    symbols: Optional[pd.Series] = None,
) -> pd.DataFrame:
    """Long table with one row per (gene, tissue, direction), sorted."""
    rows = []
    for tissue, genes in regulation.items():
        for direction, ids in (("up", genes.up), ("down", genes.down)):
            for gid in sorted(ids):
                rows.append((gid, tissue, direction))
    table = pd.DataFrame(rows, columns=["gene_id", "tissue", "direction"])
    if symbols is not None:
        table.insert(1, "symbol", symbols.reindex(table["gene_id"]).to_numpy())
    else:
        table.insert(1, "symbol", np.nan)
    return table
