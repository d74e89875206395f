"""Tests for the pydeseq2 engine."""

import numpy as np
import pytest

from tissue_deg.deseq2 import (
    fit_deseq2,
    deseq2_results,
    pairwise_contrasts,
    check_deseq2_model,
    standardize_results,
    DESeq2Model,
    RESULT_COLUMNS,
)

from conftest import (
    TISSUES,
    N_GENES,
    BRAIN_UP,
    HEART_UP,
    KIDNEY_UP,
    BRAIN_DOWN,
    NULL_GENES,
    gene_id,
)


def _ids(indices):
    return [gene_id(i) for i in indices]


class TestFit:
    """Test fit_deseq2."""

    def test_model(self, fitted_model, merged_experiment):
        assert isinstance(fitted_model, DESeq2Model)
        assert fitted_model.levels == TISSUES
        assert fitted_model.factor == "tissue"
        assert fitted_model.fit_config.design == "~tissue"
        assert fitted_model.feature_names == list(merged_experiment.row_names)
        assert len(fitted_model.sample_names) == merged_experiment.shape[1]

    def test_levels_follow_order(self, merged_experiment):
        model = fit_deseq2(merged_experiment, levels=["kidney", "brain", "heart"])
        assert model.levels == ["kidney", "brain", "heart"]

    def test_unknown_sample_level(self, merged_experiment):
        with pytest.raises(ValueError, match="not in"):
            fit_deseq2(merged_experiment, levels=["brain", "heart"])

    def test_missing_factor(self, merged_experiment):
        with pytest.raises(KeyError, match="condition"):
            fit_deseq2(merged_experiment, factor="condition")

    def test_not_an_experiment(self):
        with pytest.raises(TypeError):
            fit_deseq2(np.zeros((3, 3)))


class TestResults:
    """Test Wald-test contrasts."""

    def test_columns(self, fitted_model):
        res = deseq2_results(fitted_model, ["tissue", "brain", "heart"])
        assert list(res.columns) == RESULT_COLUMNS
        assert res.index.name == "gene_id"
        assert len(res) == N_GENES
        assert (res["baseMean"] > 0).all()

    def test_orientation(self, contrasts):
        res = contrasts[("brain", "heart")]
        assert (res.loc[_ids(BRAIN_UP), "log2FoldChange"] > 3).all()
        assert (res.loc[_ids(HEART_UP), "log2FoldChange"] < -3).all()
        assert (res.loc[_ids(BRAIN_DOWN), "log2FoldChange"] < -3).all()

    def test_reversed_contrast_flips_sign(self, fitted_model, contrasts):
        forward = contrasts[("heart", "kidney")]
        reverse = deseq2_results(fitted_model, ["tissue", "kidney", "heart"], alpha=0.01)
        np.testing.assert_allclose(
            forward["log2FoldChange"].to_numpy(),
            -reverse["log2FoldChange"].to_numpy(),
            rtol=1e-6, atol=1e-8,
        )

    def test_true_effects_significant(self, contrasts):
        res = contrasts[("brain", "kidney")]
        hits = res.loc[_ids(BRAIN_UP + KIDNEY_UP), "padj"]
        assert (hits < 0.01).mean() >= 0.8

    def test_null_genes_quiet(self, contrasts):
        for res in contrasts.values():
            nulls = res.loc[_ids(NULL_GENES), "log2FoldChange"]
            assert (nulls.abs() < 3).all()

    def test_logs_shape(self, fitted_model, caplog):
        with caplog.at_level("INFO", logger="tissue_deg"):
            deseq2_results(fitted_model, ["tissue", "heart", "kidney"])
        n_samples = len(fitted_model.sample_names)
        assert f"heart vs kidney: {N_GENES} genes x {n_samples} samples tested" in caplog.text

    def test_model_results_method(self, fitted_model, contrasts):
        res = fitted_model.results("brain", "heart")
        np.testing.assert_allclose(
            res["log2FoldChange"].to_numpy(),
            contrasts[("brain", "heart")]["log2FoldChange"].to_numpy(),
        )

    @pytest.mark.parametrize("contrast, match", [
        (["tissue", "brain", "liver"], "not present"),
        (["tissue", "brain", "brain"], "must differ"),
        (["condition", "brain", "heart"], "fitted on"),
        (["brain", "heart"], "Contrast must be"),
    ])
    def test_invalid_contrast(self, fitted_model, contrast, match):
        with pytest.raises(ValueError, match=match):
            deseq2_results(fitted_model, contrast)

    def test_not_a_model(self):
        with pytest.raises(TypeError, match="DESeq2Model"):
            check_deseq2_model("model")

    def test_unfitted_model(self):
        with pytest.raises(ValueError, match="not been fitted"):
            check_deseq2_model(DESeq2Model())


class TestPairwise:
    """Test pairwise_contrasts."""

    def test_keys(self, contrasts):
        assert list(contrasts) == [("brain", "heart"), ("brain", "kidney"), ("heart", "kidney")]

    def test_subset_of_levels(self, fitted_model):
        out = pairwise_contrasts(fitted_model, levels=["heart", "kidney"])
        assert list(out) == [("heart", "kidney")]


class TestStandardize:
    """Test result standardization."""

    def test_casts_and_orders(self):
        import pandas as pd
        df = pd.DataFrame({
            "padj": [0.02, np.nan],
            "pvalue": [0.01, 0.5],
            "stat": [4, -1],
            "lfcSE": [0.5, 1.0],
            "log2FoldChange": [2.0, -1.0],
            "baseMean": [10, 20],
            "extra": ["x", "y"],
        }, index=["a", "b"])
        out = standardize_results(df)
        assert list(out.columns) == RESULT_COLUMNS
        assert (out.dtypes == float).all()
        assert out.loc["a", "stat"] == pytest.approx(4.0)
        assert np.isnan(out.loc["b", "padj"])

    def test_requires_stat(self):
        import pandas as pd
        df = pd.DataFrame({c: [1.0] for c in RESULT_COLUMNS if c != "stat"})
        with pytest.raises(KeyError, match="stat"):
            standardize_results(df)

    def test_feature_names(self):
        import pandas as pd
        df = pd.DataFrame({c: [1.0] for c in RESULT_COLUMNS}, index=["1"])
        out = standardize_results(df, feature_names=["ENSG1"])
        assert list(out.index) == ["ENSG1"]
        assert out.index.name == "gene_id"

    def test_missing_columns(self):
        import pandas as pd
        with pytest.raises(KeyError, match="lack columns"):
            standardize_results(pd.DataFrame({"baseMean": [1.0]}))
