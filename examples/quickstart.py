# examples/quickstart.py
import numpy as np
import tissue_deg as td

# --- make a tiny toy counts matrix (genes x samples) per tissue ---
genes = [f"ENSG{i:011d}.1" for i in range(300)]
rng = np.random.default_rng(1)
base = rng.uniform(50, 400, size=len(genes))

from biocframe import BiocFrame
from summarizedexperiment import SummarizedExperiment

experiments = []
for t, tissue in enumerate(["brain", "heart", "kidney"]):
    mu = base.copy()
    mu[t * 10:(t + 1) * 10] *= 30  # ten marker genes per tissue
    counts = rng.negative_binomial(n=20, p=20 / (20 + mu[:, None]), size=(len(genes), 3))
    experiments.append(SummarizedExperiment(
        assays={"counts": counts},
        row_data=BiocFrame({"chromosome": ["chr1"] * len(genes), "length": [1500.0] * len(genes)}),
        column_data=BiocFrame({"tissue": [tissue] * 3}),
        row_names=genes,
        column_names=[f"{tissue}{r + 1}" for r in range(3)],
        metadata={"tissue": tissue},
    ))

# Filter, merge, normalize
experiments = [td.quality_filter(se) for se in experiments]
se = td.expression_filter(td.merge_tissues(experiments))
se = td.normalize_counts(se)
se = td.variance_stabilize(se)
coords, ratio = td.compute_pca(se)
print(coords)

# Fit DESeq2 and test every tissue pair
model = td.deseq2.fit_deseq2(se, levels=["brain", "heart", "kidney"])
contrasts = td.deseq2.pairwise_contrasts(model)
print(contrasts[("brain", "heart")].sort_values("padj").head())

regulation = td.tissue_regulation(contrasts, ["brain", "heart", "kidney"])
print(td.regulation_table(regulation))

# The full pipeline from count tables:
#   config = td.PipelineConfig.from_json("config.json")
#   td.save_results(td.run_pipeline(config), "results/")
