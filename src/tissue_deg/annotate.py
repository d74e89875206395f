"""
Map gene identifiers to gene symbols.

Symbols come either from MyGene.info (online) or from a local two-column
table of gene id and symbol. Ensembl version suffixes are ignored when
matching, so ``ENSG00000141510.17`` maps like ``ENSG00000141510``.

Example:
    >>> symbols = map_symbols(results.index, source="gene_symbols.tsv")
    >>> annotated = annotate_results(results, symbols)
"""

from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Sequence, Union
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^(ENS[A-Z]*[GTP]\d+)\.\d+$")
MYGENE_SCOPES = "ensembl.gene,entrezgene,symbol"


def strip_version(ids: Iterable[str]) -> list:
    """Remove Ensembl version suffixes; other identifiers pass through."""
    out = []
    for gid in ids:
        gid = str(gid)
        m = _VERSION_RE.match(gid)
        out.append(m.group(1) if m else gid)
    return out


def load_symbol_table(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read a gene id to symbol table.

    The first column is the gene id and the second the symbol. Tab- or
    comma-separated, with a header row. Empty symbols are skipped.

    Raises:
        FileNotFoundError: If the table does not exist.
        ValueError: If it has fewer than two columns.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Symbol table not found: {path}")
    sep = "," if path.suffix.lower() == ".csv" else "\t"
    table = pd.read_csv(path, sep=sep, dtype=str)
    if table.shape[1] < 2:
        raise ValueError(f"Symbol table {path} needs two columns (gene id, symbol)")

    table = table.iloc[:, :2].dropna()
    ids = strip_version(table.iloc[:, 0])
    mapping: Dict[str, str] = {}
    for gid, symbol in zip(ids, table.iloc[:, 1]):
        # first occurrence wins
        mapping.setdefault(gid, symbol)
    logger.info(f"Loaded {len(mapping)} gene symbols from {path.name}")
    return mapping


def query_mygene(ids: Sequence[str], species: str = "human") -> Dict[str, str]:
    """
    Look up symbols on MyGene.info.

    The first hit per query wins; ids without a hit are absent from the
    returned mapping.
    """
    import mygene

    unique = list(dict.fromkeys(ids))
    if not unique:
        return {}

    logger.info(f"Querying MyGene.info for {len(unique)} gene ids ({species})")
    mg = mygene.MyGeneInfo()
    hits = mg.querymany(
        unique,
        scopes=MYGENE_SCOPES,
        fields="symbol",
        species=species,
        returnall=False,
        verbose=False,
    )

    mapping: Dict[str, str] = {}
    for hit in hits:
        if hit.get("notfound") or "symbol" not in hit:
            continue
        mapping.setdefault(str(hit["query"]), str(hit["symbol"]))
    return mapping


def map_symbols(
    ids: Iterable[str],
    source: Union[str, Path] = "mygene",
    species: str = "human",
) -> pd.Series:
    """
    Map gene ids to symbols.

    Args:
        ids: Gene identifiers, with or without Ensembl version suffixes.
        source: "mygene" for an online lookup, or the path to a local
            id/symbol table.
        species: Species for MyGene.info. Ignored for local tables.

    Returns:
        pd.Series of symbols indexed by the original ids. Unmapped ids are NaN.
    """
    ids = [str(i) for i in ids]
    stripped = strip_version(ids)

    if str(source) == "mygene":
        mapping = query_mygene(stripped, species=species)
    else:
        mapping = load_symbol_table(source)

    symbols = pd.Series(
        [mapping.get(s, np.nan) for s in stripped],
        index=pd.Index(ids, name="gene_id"),
        name="symbol",
        dtype=object,
    )
    n_mapped = int(symbols.notna().sum())
    logger.info(f"Mapped {n_mapped}/{len(ids)} gene ids to symbols")
    if ids and n_mapped == 0:
        logger.warning("No gene id could be mapped to a symbol; check the id type and species")
    return symbols


def annotate_results(results: pd.DataFrame, symbols: pd.Series) -> pd.DataFrame:
    """Return a copy of ``results`` with a 'symbol' column (NaN where unmapped)."""
    out = results.copy()
    out["symbol"] = symbols.reindex(out.index.astype(str)).to_numpy()
    return out
