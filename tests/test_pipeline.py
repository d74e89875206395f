"""End-to-end tests for run_pipeline and save_results."""

import json

import matplotlib.pyplot as plt
import pandas as pd
import pytest

from tissue_deg import PipelineConfig, run_pipeline, save_results, RegulatedGenes
from tissue_deg.deseq2 import DESeq2Model

from conftest import (
    TISSUES,
    N_GENES,
    BRAIN_UP,
    HEART_UP,
    KIDNEY_UP,
    BRAIN_DOWN,
    NULL_GENES,
    gene_id,
    symbol,
)


def _ids(indices):
    return {gene_id(i) for i in indices}


@pytest.fixture(scope="module")
def config(config_file):
    return PipelineConfig.from_json(config_file)


@pytest.fixture(scope="module")
def result(config):
    out = run_pipeline(config)
    yield out
    plt.close("all")


class TestRunPipeline:
    """Test the assembled pipeline on mock data."""

    def test_experiment(self, result):
        se = result.experiment
        assert se.shape == (N_GENES, len(TISSUES) * 3)
        assert {"counts", "normalized", "vst"} <= set(se.assay_names)
        assert "size_factors" in list(se.get_column_data().column_names)
        assert list(se.get_row_data()["symbol"])[0] == symbol(0)

    def test_model_and_contrasts(self, result):
        assert isinstance(result.model, DESeq2Model)
        assert list(result.contrasts) == [("brain", "heart"), ("brain", "kidney"), ("heart", "kidney")]
        for res in result.contrasts.values():
            assert "symbol" in res.columns
            assert len(res) == N_GENES

    def test_metadata(self, result):
        assert list(result.metadata["tissue"].cat.categories) == TISSUES

    @pytest.mark.parametrize("tissue, expected", [
        ("brain", BRAIN_UP),
        ("heart", HEART_UP),
        ("kidney", KIDNEY_UP),
    ])
    def test_up_regulated(self, result, tissue, expected):
        up = result.regulation[tissue].up
        assert len(up & _ids(expected)) >= 8
        assert not up & _ids(NULL_GENES)

    def test_down_regulated(self, result):
        down = result.regulation["brain"].down
        assert len(down & _ids(BRAIN_DOWN)) >= 8
        assert not down & _ids(NULL_GENES)

    def test_sets_disjoint(self, result):
        for genes in result.regulation.values():
            assert isinstance(genes, RegulatedGenes)
            assert not genes.up & genes.down

    def test_figures(self, result):
        assert {"pca", "mean_variance"} <= set(result.figures)
        assert "volcano_brain_vs_heart" in result.figures

    def test_regulation_table(self, result):
        table = result.regulation_table()
        assert set(table["direction"]) <= {"up", "down"}
        brain_up = table[(table["tissue"] == "brain") & (table["direction"] == "up")]
        assert set(brain_up["symbol"].dropna()) <= {symbol(i) for i in BRAIN_UP}

    def test_no_figures(self, config):
        out = run_pipeline(config, make_figures=False)
        assert out.figures == {}

    def test_invalid_config(self, config):
        with pytest.raises(ValueError, match="Unknown engine"):
            run_pipeline(config.with_overrides(engine="limma"))


class TestSaveResults:
    """Test writing outputs."""

    def test_files(self, result, tmp_path):
        written = save_results(result, tmp_path / "out")
        for name in ("normalized_counts", "vst_counts", "sample_metadata",
                     "deseq2_brain_vs_heart", "deseq2_brain_vs_heart_significant",
                     "tissue_regulation", "pca", "config"):
            assert name in written
            assert written[name].exists()

    def test_tables(self, result, tmp_path):
        written = save_results(result, tmp_path)
        res = pd.read_csv(written["deseq2_brain_vs_kidney"], index_col=0)
        assert res.index.name == "gene_id"
        assert {"log2FoldChange", "padj", "symbol"} <= set(res.columns)

        sig = pd.read_csv(written["deseq2_brain_vs_kidney_significant"], index_col=0)
        assert (sig["padj"] < 0.01).all()
        assert (sig["log2FoldChange"].abs() > 3).all()
        assert sig["padj"].is_monotonic_increasing

        table = pd.read_csv(written["tissue_regulation"])
        assert list(table.columns) == ["gene_id", "symbol", "tissue", "direction"]

    def test_config_roundtrip(self, result, tmp_path):
        written = save_results(result, tmp_path)
        with open(written["config"]) as f:
            data = json.load(f)
        assert PipelineConfig.from_dict(data) == result.config
