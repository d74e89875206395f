from __future__ import annotations
from typing import Any
import pandas as pd

RESULT_COLUMNS = ["baseMean", "log2FoldChange", "lfcSE", "stat", "pvalue", "padj"]


def standardize_results(df: pd.DataFrame, feature_names: Any = None) -> pd.DataFrame:
    """Return DESeq2 results with the standard columns, float dtype and a
    ``gene_id`` index, whichever engine produced them."""
    out = df.copy()
    missing = [c for c in RESULT_COLUMNS if c not in out.columns]
    if missing:
        raise KeyError(f"DESeq2 results lack columns: {missing}")

    out = out[RESULT_COLUMNS].astype(float)
    if feature_names is not None:
        out.index = [str(g) for g in feature_names]
    else:
        out.index = out.index.astype(str)
    out.index.name = "gene_id"
    return out
