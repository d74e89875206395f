"""
Shared fixtures: mock featureCounts tables for three tissues.

Each tissue has 3 replicates over 200 regular genes with known tissue
effects, plus genes the quality filters must remove:

- genes 0-9 are 40x higher in brain, 10-19 in heart, 20-29 in kidney;
- genes 30-39 are 40x lower in brain;
- 5 short genes (< 200 bp), 3 chrM genes and 2 all-zero genes;
- kidney carries one extra gene the merge must drop.
"""

import matplotlib
matplotlib.use("Agg")

import json
import numpy as np
import pandas as pd
import pytest

TISSUES = ["brain", "heart", "kidney"]
N_REP = 3
N_GENES = 200
FOLD = 40.0

BRAIN_UP = list(range(0, 10))
HEART_UP = list(range(10, 20))
KIDNEY_UP = list(range(20, 30))
BRAIN_DOWN = list(range(30, 40))
NULL_GENES = list(range(40, N_GENES))

SHORT_GENES = list(range(200, 205))
MITO_GENES = list(range(205, 208))
ZERO_GENES = list(range(208, 210))
KIDNEY_ONLY_GENE = "ENSG99999999999.1"


def gene_id(i: int) -> str:
    return f"ENSG{i:011d}.{1 + i % 3}"


def symbol(i: int) -> str:
    return f"SYM{i}"


def _simulate(seed: int = 42):
    """Return {tissue: genes x replicates count matrix} for all 210 genes."""
    rng = np.random.default_rng(seed)
    n_total = N_GENES + len(SHORT_GENES) + len(MITO_GENES) + len(ZERO_GENES)
    base = rng.uniform(100, 500, size=n_total)

    fold = np.ones((n_total, len(TISSUES)))
    fold[BRAIN_UP, 0] = FOLD
    fold[HEART_UP, 1] = FOLD
    fold[KIDNEY_UP, 2] = FOLD
    fold[BRAIN_DOWN, 0] = 1.0 / FOLD

    nb_size = 20.0
    out = {}
    for t, tissue in enumerate(TISSUES):
        mu = base * fold[:, t]
        p = nb_size / (nb_size + mu)
        counts = rng.negative_binomial(nb_size, p[:, None], size=(n_total, N_REP))
        counts[ZERO_GENES, :] = 0
        out[tissue] = counts
    return out


def _annotation(n_total: int) -> pd.DataFrame:
    chroms, lengths = [], []
    for i in range(n_total):
        if i in MITO_GENES:
            chroms.append("chrM")
        elif i % 4 == 0:
            # multi-exon genes list one chromosome per exon
            chroms.append(f"chr{1 + i % 22};chr{1 + i % 22}")
        else:
            chroms.append(f"chr{1 + i % 22}")
        lengths.append(150 if i in SHORT_GENES else 1000 + 10 * i)
    return pd.DataFrame({
        "Geneid": [gene_id(i) for i in range(n_total)],
        "Chr": chroms,
        "Start": [1000 * i + 1 for i in range(n_total)],
        "End": [1000 * i + 1 + lengths[i] for i in range(n_total)],
        "Strand": ["+"] * n_total,
        "Length": lengths,
    })


def write_feature_counts(path, tissue: str, counts: np.ndarray, extra_gene: bool = False) -> None:
    """Write a featureCounts-style table with BAM paths as sample columns."""
    table = _annotation(counts.shape[0])
    for r in range(counts.shape[1]):
        table[f"/data/bam/{tissue}{r + 1}.bam"] = counts[:, r]
    if extra_gene:
        row = {"Geneid": KIDNEY_ONLY_GENE, "Chr": "chr1", "Start": 1, "End": 2001,
               "Strand": "-", "Length": 2000}
        row.update({c: 100 for c in table.columns[6:]})
        table = pd.concat([table, pd.DataFrame([row])], ignore_index=True)
    with open(path, "w") as f:
        f.write("# Program:featureCounts v2.0.1; Command:\"featureCounts\" \"-a\" \"genes.gtf\"\n")
        table.to_csv(f, sep="\t", index=False)


@pytest.fixture(scope="session")
def simulated_counts():
    return _simulate()


@pytest.fixture(scope="session")
def count_files(tmp_path_factory, simulated_counts):
    """Paths to the three featureCounts tables, keyed by tissue."""
    d = tmp_path_factory.mktemp("counts")
    files = {}
    for tissue in TISSUES:
        path = d / f"{tissue}_counts.txt"
        write_feature_counts(path, tissue, simulated_counts[tissue], extra_gene=(tissue == "kidney"))
        files[tissue] = path
    return files


@pytest.fixture(scope="session")
def symbol_table(tmp_path_factory):
    """Gene id/symbol TSV covering every regular gene except the last."""
    d = tmp_path_factory.mktemp("annotation")
    path = d / "gene_symbols.tsv"
    pd.DataFrame({
        "gene_id": [gene_id(i) for i in range(N_GENES - 1)],
        "symbol": [symbol(i) for i in range(N_GENES - 1)],
    }).to_csv(path, sep="\t", index=False)
    return path


@pytest.fixture(scope="session")
def config_file(tmp_path_factory, count_files, symbol_table):
    d = tmp_path_factory.mktemp("config")
    path = d / "config.json"
    with open(path, "w") as f:
        json.dump({
            "count_files": {t: str(p) for t, p in count_files.items()},
            "tissues": TISSUES,
            "symbol_source": str(symbol_table),
            "output_dir": str(d / "results"),
        }, f)
    return path


@pytest.fixture(scope="session")
def tissue_experiments(count_files):
    """Per-tissue experiments after the quality filter."""
    from tissue_deg import read_count_table, quality_filter
    return [quality_filter(read_count_table(count_files[t], tissue=t)) for t in TISSUES]


@pytest.fixture(scope="session")
def merged_experiment(tissue_experiments):
    """Merged, expression-filtered experiment (200 genes x 9 samples)."""
    from tissue_deg import merge_tissues, expression_filter
    return expression_filter(merge_tissues(tissue_experiments))


@pytest.fixture(scope="session")
def fitted_model(merged_experiment):
    from tissue_deg.deseq2 import fit_deseq2
    return fit_deseq2(merged_experiment, levels=TISSUES)


@pytest.fixture(scope="session")
def contrasts(fitted_model):
    from tissue_deg.deseq2 import pairwise_contrasts
    return pairwise_contrasts(fitted_model, alpha=0.01)
