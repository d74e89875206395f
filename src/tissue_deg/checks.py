"""
Input validation utilities for the pipeline stages.

Provides centralized checks for SummarizedExperiment inputs, count assays,
metadata columns and contrasts.
"""

from __future__ import annotations
from typing import Any, Sequence
import numpy as np


def check_se(se: Any, name: str = "se") -> None:
    """Check that input is a SummarizedExperiment-like object.

    Accepts any object with assays and assay_names attributes
    (duck typing for SE, RSE, SCE).
    """
    required_attrs = ["assays", "assay_names"]
    for attr in required_attrs:
        if not hasattr(se, attr):
            raise TypeError(
                f"Expected `{name}` to be a SummarizedExperiment-like object, "
                f"got {type(se).__name__} which lacks '{attr}'"
            )


def check_assay_exists(se: Any, assay: str) -> None:
    """Check that the specified assay exists in the SummarizedExperiment."""
    if assay not in se.assay_names:
        available = list(se.assay_names)
        raise KeyError(
            f"Assay '{assay}' not found. Available assays: {available}"
        )


def check_count_assay(se: Any, assay: str = "counts") -> None:
    """Check that an assay holds non-negative integer counts.

    Raises:
        KeyError: If the assay doesn't exist.
        ValueError: If it contains negative, missing or fractional values.
    """
    check_assay_exists(se, assay)
    counts = np.asarray(se.assays[assay], dtype=float)
    if np.isnan(counts).any():
        raise ValueError(f"Assay '{assay}' contains missing values")
    if (counts < 0).any():
        raise ValueError(f"Assay '{assay}' contains negative counts")
    if not np.allclose(counts, np.round(counts)):
        raise ValueError(f"Assay '{assay}' contains non-integer counts")


def check_column(frame: Any, column: str, where: str = "column_data") -> None:
    """Check that a BiocFrame (or DataFrame) has the given column."""
    names = frame.column_names if hasattr(frame, "column_names") else frame.columns
    if column not in list(names):
        raise KeyError(
            f"Column '{column}' not found in {where}. Available: {list(names)}"
        )


def check_contrast(levels: Sequence[str], numerator: str, denominator: str) -> None:
    """Check that both contrast levels exist and differ."""
    if numerator == denominator:
        raise ValueError(f"Contrast levels must differ, got '{numerator}' twice")
    missing = [lvl for lvl in (numerator, denominator) if lvl not in set(levels)]
    if missing:
        raise ValueError(
            f"Contrast levels {missing} not present. Available levels: {list(levels)}"
        )
