"""Tests for significance calls and tissue-specific gene sets."""

import numpy as np
import pandas as pd
import pytest

from tissue_deg import (
    RegulatedGenes,
    significant,
    split_regulated,
    tissue_regulation,
    regulation_table,
)


def _res(rows):
    """rows: {gene: (log2FoldChange, padj)}"""
    return pd.DataFrame(
        {"log2FoldChange": [v[0] for v in rows.values()], "padj": [v[1] for v in rows.values()]},
        index=pd.Index(list(rows), name="gene_id"),
    )


@pytest.fixture
def contrasts():
    # A is higher in brain than both others; B lower in brain; C higher in
    # brain than heart only; D higher in kidney than both others.
    return {
        ("brain", "heart"): _res({
            "A": (5.0, 1e-8), "B": (-4.0, 1e-6), "C": (6.0, 1e-9), "D": (0.1, 0.9),
        }),
        ("brain", "kidney"): _res({
            "A": (4.5, 1e-7), "B": (-5.0, 1e-6), "C": (0.2, 0.8), "D": (-4.0, 1e-5),
        }),
        ("heart", "kidney"): _res({
            "A": (-0.3, 0.7), "B": (0.1, 0.9), "C": (-5.5, 1e-6), "D": (-3.5, 1e-4),
        }),
    }


class TestSignificant:
    """Test the per-contrast significance mask."""

    def test_thresholds_are_strict(self):
        res = _res({
            "a": (3.0, 0.001), "b": (3.01, 0.001), "c": (-3.01, 0.001),
            "d": (5.0, 0.01), "e": (5.0, np.nan), "f": (np.nan, 0.001),
        })
        mask = significant(res, lfc_threshold=3.0, padj_threshold=0.01)
        assert mask.tolist() == [False, True, True, False, False, False]
        assert mask.dtype == bool

    def test_split_regulated(self):
        res = _res({"a": (4.0, 1e-5), "b": (-4.0, 1e-5), "c": (1.0, 1e-5)})
        up, down = split_regulated(res)
        assert up == {"a"}
        assert down == {"b"}


class TestTissueRegulation:
    """Test intersection across contrasts."""

    def test_sets(self, contrasts):
        reg = tissue_regulation(contrasts, ["brain", "heart", "kidney"])
        assert reg["brain"] == RegulatedGenes(up={"A"}, down={"B"})
        assert reg["kidney"] == RegulatedGenes(up={"D"}, down=set())
        # C is higher in brain and kidney than in heart
        assert reg["heart"] == RegulatedGenes(up=set(), down={"C"})

    def test_thresholds_forwarded(self, contrasts):
        reg = tissue_regulation(contrasts, ["brain", "heart", "kidney"], lfc_threshold=4.2)
        assert reg["brain"].up == {"A"}
        assert reg["brain"].down == set()

    def test_reverse_orientation(self, contrasts):
        flipped = {}
        for (a, b), res in contrasts.items():
            out = res.copy()
            out["log2FoldChange"] = -out["log2FoldChange"]
            flipped[(b, a)] = out
        assert tissue_regulation(flipped, ["brain", "heart", "kidney"]) == \
            tissue_regulation(contrasts, ["brain", "heart", "kidney"])

    def test_missing_pair(self, contrasts):
        del contrasts[("heart", "kidney")]
        with pytest.raises(KeyError, match="No contrast"):
            tissue_regulation(contrasts, ["brain", "heart", "kidney"])

    def test_single_tissue(self, contrasts):
        with pytest.raises(ValueError, match="at least two"):
            tissue_regulation(contrasts, ["brain"])


class TestRegulationTable:
    """Test the long-format summary table."""

    def test_table(self, contrasts):
        reg = tissue_regulation(contrasts, ["brain", "heart", "kidney"])
        symbols = pd.Series({"A": "GFAP", "B": "MYH6", "C": np.nan}, name="symbol")
        table = regulation_table(reg, symbols)
        assert list(table.columns) == ["gene_id", "symbol", "tissue", "direction"]
        assert table[["gene_id", "tissue", "direction"]].values.tolist() == [
            ["A", "brain", "up"],
            ["B", "brain", "down"],
            ["C", "heart", "down"],
            ["D", "kidney", "up"],
        ]
        assert table["symbol"].iloc[0] == "GFAP"
        assert table["symbol"].iloc[2:].isna().all()

    def test_table_without_symbols(self):
        table = regulation_table({"brain": RegulatedGenes(up={"x"})})
        assert table["symbol"].isna().all()
        assert len(table) == 1
