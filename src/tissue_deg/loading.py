"""
Load per-tissue count tables and merge them into one experiment.

Count tables follow the featureCounts layout: optional ``#`` comment lines,
then ``Geneid, Chr, Start, End, Strand, Length`` followed by one column per
sample. Each table becomes a SummarizedExperiment (genes x samples) with
gene annotation in ``row_data`` and the tissue label in ``column_data``.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
import numpy as np
import pandas as pd

from biocframe import BiocFrame
from summarizedexperiment import SummarizedExperiment

from .checks import check_se, check_assay_exists, check_column

logger = logging.getLogger(__name__)

ANNOTATION_COLUMNS = ["Geneid", "Chr", "Start", "End", "Strand", "Length"]


def _sample_name(column: str) -> str:
    """Reduce a featureCounts BAM path column to a sample name."""
    name = Path(str(column)).name
    if name.endswith(".bam"):
        name = name[: -len(".bam")]
    return name


def _collapse_chromosome(value: Any) -> str:
    """Collapse ``chr1;chr1;chr1`` to ``chr1``. Mixed values keep the first."""
    parts = [p.strip() for p in str(value).split(";") if p.strip()]
    if not parts:
        return ""
    return parts[0]


def _collapse_length(value: Any) -> float:
    # Some tools emit one length per exon; the gene length is their sum.
    if isinstance(value, str) and ";" in value:
        return float(sum(float(v) for v in value.split(";") if v))
    return float(value)


def frame_to_pandas(frame: Any, index: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Convert a BiocFrame to pandas, column by column."""
    data = {col: list(frame[col]) for col in frame.column_names}
    return pd.DataFrame(data, index=None if index is None else list(index))


def read_count_table(
    path: Union[str, Path],
    tissue: str,
    sample_columns: Optional[Sequence[str]] = None,
) -> SummarizedExperiment:
    """
    Read a featureCounts-style table for one tissue.

    Args:
        path: Path to the tab-separated (or ``.csv``) count table.
        tissue: Tissue label stored in column_data['tissue'].
        sample_columns: Optional explicit list of sample columns to keep.
            Default: every column after ``Length``.

    Returns:
        SummarizedExperiment with a 'counts' assay, row_data columns
        'chromosome' and 'length', and column_data column 'tissue'.

    Raises:
        FileNotFoundError: If the file does not exist.
        KeyError: If an annotation or requested sample column is missing.
        ValueError: If gene ids are duplicated or no sample columns remain.

    Example:
        >>> se = read_count_table("brain_counts.txt", tissue="brain")
        >>> se.shape
        (60656, 3)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Count table not found: {path}")

    sep = "," if path.suffix.lower() == ".csv" else "\t"
    table = pd.read_csv(path, sep=sep, comment="#")

    missing = [c for c in ANNOTATION_COLUMNS if c not in table.columns]
    if missing:
        raise KeyError(f"Count table {path} lacks annotation columns: {missing}")

    if sample_columns is None:
        sample_columns = [c for c in table.columns if c not in ANNOTATION_COLUMNS]
    else:
        absent = [c for c in sample_columns if c not in table.columns]
        if absent:
            raise KeyError(f"Sample columns {absent} not found in {path}")
    sample_columns = list(sample_columns)
    if not sample_columns:
        raise ValueError(f"No sample columns found in {path}")

    gene_ids = table["Geneid"].astype(str)
    if gene_ids.duplicated().any():
        dups = gene_ids[gene_ids.duplicated()].unique()[:5].tolist()
        raise ValueError(f"Duplicated gene ids in {path}, e.g. {dups}")

    counts = table[sample_columns].to_numpy()
    samples = [_sample_name(c) for c in sample_columns]

    row_data = BiocFrame({
        "chromosome": [_collapse_chromosome(v) for v in table["Chr"]],
        "length": np.asarray([_collapse_length(v) for v in table["Length"]], dtype=float),
    })
    column_data = BiocFrame({"tissue": [tissue] * len(samples)})

    logger.info(f"Loaded {tissue}: {counts.shape[0]} genes x {counts.shape[1]} samples from {path.name}")

    return SummarizedExperiment(
        assays={"counts": counts},
        row_data=row_data,
        column_data=column_data,
        row_names=gene_ids.tolist(),
        column_names=samples,
        metadata={"tissue": tissue, "source": str(path)},
    )


def experiment_to_frame(se: Any, assay: str = "counts") -> pd.DataFrame:
    """Return an assay as a genes x samples DataFrame."""
    check_se(se)
    check_assay_exists(se, assay)
    return pd.DataFrame(
        np.asarray(se.assays[assay]),
        index=list(se.row_names),
        columns=list(se.column_names),
    )


def merge_tissues(experiments: Sequence[SummarizedExperiment]) -> SummarizedExperiment:
    """
    Merge per-tissue experiments into one, keeping genes present in all.

    Gene annotation is taken from the first experiment. Column order
    follows the order of ``experiments``.

    Raises:
        ValueError: If fewer than two experiments are given, sample names
            collide across experiments, or no gene is shared.
    """
    if len(experiments) < 2:
        raise ValueError("Need at least two experiments to merge")

    frames: List[pd.DataFrame] = []
    tissues: List[str] = []
    for se in experiments:
        check_se(se)
        check_column(se.get_column_data(), "tissue")
        frames.append(experiment_to_frame(se, "counts"))
        tissues.extend(str(t) for t in se.get_column_data()["tissue"])

    samples = [s for f in frames for s in f.columns]
    if len(set(samples)) != len(samples):
        seen: Dict[str, int] = {}
        for s in samples:
            seen[s] = seen.get(s, 0) + 1
        dups = sorted(s for s, n in seen.items() if n > 1)
        raise ValueError(f"Duplicate sample names across tissues: {dups}")

    shared = frames[0].index
    for f in frames[1:]:
        shared = shared.intersection(f.index, sort=False)
    if len(shared) == 0:
        raise ValueError("No genes shared by all experiments")

    for se, f in zip(experiments, frames):
        dropped = len(f.index) - len(shared)
        if dropped:
            logger.info(f"Merge drops {dropped} genes not shared by all tissues "
                        f"({se.metadata.get('tissue', 'experiment')})")

    counts = pd.concat([f.loc[shared] for f in frames], axis=1)

    first = experiments[0]
    annotation = frame_to_pandas(first.get_row_data(), index=first.row_names).loc[shared]
    row_data = BiocFrame({col: annotation[col].tolist() for col in annotation.columns})

    logger.info(f"Merged {len(experiments)} tissues: {counts.shape[0]} genes x {counts.shape[1]} samples")

    return SummarizedExperiment(
        assays={"counts": counts.to_numpy()},
        row_data=row_data,
        column_data=BiocFrame({"tissue": tissues}),
        row_names=[str(g) for g in shared],
        column_names=[str(s) for s in counts.columns],
        metadata={"tissues": list(dict.fromkeys(tissues))},
    )


def build_metadata(
    se: Any,
    tissues: Optional[Sequence[str]] = None,
    tissue_column: str = "tissue",
) -> pd.DataFrame:
    """
    Build the sample metadata table used for the DESeq2 design.

    Args:
        se: Merged SummarizedExperiment.
        tissues: Level order for the tissue factor. The first level is the
            reference. Default: order of first appearance.
        tissue_column: column_data column holding the tissue label.

    Returns:
        pd.DataFrame indexed by sample with a categorical tissue column.

    Raises:
        ValueError: If a sample's tissue is not among ``tissues``.
    """
    check_se(se)
    coldata = se.get_column_data()
    check_column(coldata, tissue_column)

    values = [str(t) for t in coldata[tissue_column]]
    levels = list(tissues) if tissues is not None else list(dict.fromkeys(values))
    unknown = sorted(set(values) - set(levels))
    if unknown:
        raise ValueError(f"Samples with tissues {unknown} not among levels {levels}")

    meta = pd.DataFrame(
        {tissue_column: pd.Categorical(values, categories=levels, ordered=True)},
        index=pd.Index(list(se.column_names), name="sample"),
    )
    for tissue, n in meta[tissue_column].value_counts(sort=False).items():
        logger.info(f"  {tissue}: {n} samples")
    return meta
