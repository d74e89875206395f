from __future__ import annotations
from typing import Any, TypeVar
import numpy as np
import pandas as pd

from biocframe import BiocFrame

from .checks import check_column

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


def with_assay(se: SE, name: str, values: Any) -> SE:
    """Return a copy of ``se`` with assay ``name`` added or replaced."""
    new_assays = dict(se.assays)
    new_assays[name] = values
    return se.set_assays(new_assays, in_place=False)


def with_column_data(se: SE, name: str, values: Any) -> SE:
    """Return a copy of ``se`` with column ``name`` set in column_data."""
    coldata = se.get_column_data()
    if coldata is not None:
        new_coldata = coldata.set_column(name, values)
    else:
        new_coldata = BiocFrame({name: values})
    return se.set_column_data(new_coldata, in_place=False)


def with_row_data(se: SE, name: str, values: Any) -> SE:
    """Return a copy of ``se`` with column ``name`` set in row_data."""
    rowdata = se.get_row_data()
    if rowdata is not None:
        new_rowdata = rowdata.set_column(name, values)
    else:
        new_rowdata = BiocFrame({name: values})
    return se.set_row_data(new_rowdata, in_place=False)


def deseq_inputs(se: Any, tissue_column: str = "tissue", assay: str = "counts"):
    """Build the (samples x genes counts, sample metadata) pair DESeq2 expects.

    Returns:
        Tuple[pd.DataFrame, pd.DataFrame]: integer counts indexed by sample
        with genes as columns, and metadata indexed by sample with the tissue
        column as plain strings.
    """
    coldata = se.get_column_data()
    check_column(coldata, tissue_column)
    samples = [str(s) for s in se.column_names]
    counts = pd.DataFrame(
        np.asarray(se.assays[assay]).T.round().astype(int),
        index=samples,
        columns=[str(g) for g in se.row_names],
    )
    metadata = pd.DataFrame(
        {tissue_column: [str(t) for t in coldata[tissue_column]]},
        index=samples,
    )
    return counts, metadata
