"""
Pipeline configuration.

A single dataclass carries every threshold and path the pipeline uses.
It can be built from a dict or a JSON file and overridden from the CLI.

Usage:
    >>> from tissue_deg import PipelineConfig
    >>> config = PipelineConfig.from_json("config.json")
    >>> config.lfc_threshold
    3.0
"""

from __future__ import annotations
import json
from dataclasses import asdict, dataclass, field, fields
from itertools import combinations
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

DEFAULT_TISSUES: Tuple[str, ...] = ("brain", "heart", "kidney")
MITOCHONDRIAL_CHROMOSOMES: Tuple[str, ...] = ("chrM", "MT", "M")
ENGINES = ("pydeseq2", "r")


@dataclass
class PipelineConfig:
    """Thresholds, inputs and outputs for one pipeline run.

    Attributes:
        count_files: Mapping of tissue name to its count table path.
        tissues: Tissue order. The first tissue is the reference level.
        min_length: Minimum gene length in bp.
        excluded_chromosomes: Chromosome names treated as mitochondrial.
        min_total_count: Minimum count summed over all merged samples.
        min_library_size: Minimum total count for a sample to be kept.
        lfc_threshold: Absolute log2 fold-change a gene must exceed.
        padj_threshold: Adjusted p-value a gene must fall below.
        engine: DESeq2 backend, "pydeseq2" or "r".
        n_cpus: Worker count for pydeseq2 inference.
        symbol_source: "mygene" or a path to an id/symbol table.
        species: Species passed to MyGene.info.
        ntop: Number of most variable genes used for PCA.
        output_dir: Directory for tables and figures.
    """
    count_files: Dict[str, Union[str, Path]] = field(default_factory=dict)
    tissues: Tuple[str, ...] = DEFAULT_TISSUES
    min_length: int = 200
    excluded_chromosomes: Tuple[str, ...] = MITOCHONDRIAL_CHROMOSOMES
    min_total_count: int = 5
    min_library_size: int = 1
    lfc_threshold: float = 3.0
    padj_threshold: float = 0.01
    engine: str = "pydeseq2"
    n_cpus: int = 1
    symbol_source: Union[str, Path] = "mygene"
    species: str = "human"
    ntop: int = 500
    output_dir: Optional[Union[str, Path]] = None

    def __post_init__(self) -> None:
        self.tissues = tuple(self.tissues)
        self.excluded_chromosomes = tuple(self.excluded_chromosomes)
        self.count_files = {str(k): Path(v) for k, v in self.count_files.items()}
        if str(self.symbol_source) != "mygene":
            self.symbol_source = Path(self.symbol_source)
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PipelineConfig":
        """Load a config from a JSON file.

        Relative paths (count files, a symbol table, the output directory)
        are resolved against the JSON file's directory.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        base = path.parent

        def _resolve(p: Union[str, Path]) -> Path:
            return Path(p) if Path(p).is_absolute() else base / p

        files = data.get("count_files", {})
        data["count_files"] = {tissue: _resolve(p) for tissue, p in files.items()}
        source = data.get("symbol_source")
        if source is not None and str(source) != "mygene":
            data["symbol_source"] = _resolve(source)
        if data.get("output_dir") is not None:
            data["output_dir"] = _resolve(data["output_dir"])
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["count_files"] = {k: str(v) for k, v in self.count_files.items()}
        out["tissues"] = list(self.tissues)
        out["excluded_chromosomes"] = list(self.excluded_chromosomes)
        out["symbol_source"] = str(self.symbol_source)
        out["output_dir"] = None if self.output_dir is None else str(self.output_dir)
        return out

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with the non-None overrides applied."""
        data = asdict(self)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return type(self).from_dict(data)

    def validate(self) -> None:
        """Check the config for internal consistency.

        Raises:
            ValueError: On an unknown engine, fewer than two tissues, a tissue
                without a count file, or a non-positive threshold.
        """
        if self.engine not in ENGINES:
            raise ValueError(f"Unknown engine {self.engine!r}. Choose one of {list(ENGINES)}")
        if len(self.tissues) < 2:
            raise ValueError("At least two tissues are required for pairwise contrasts")
        if len(set(self.tissues)) != len(self.tissues):
            raise ValueError(f"Duplicate tissue names in {list(self.tissues)}")
        missing = [t for t in self.tissues if t not in self.count_files]
        if missing:
            raise ValueError(f"No count file configured for tissues: {missing}")
        if self.lfc_threshold <= 0:
            raise ValueError("lfc_threshold must be positive")
        if not 0 < self.padj_threshold <= 1:
            raise ValueError("padj_threshold must be in (0, 1]")
        for name in ("min_length", "min_total_count", "min_library_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.n_cpus < 1:
            raise ValueError("n_cpus must be at least 1")
        if self.ntop < 2:
            raise ValueError("ntop must be at least 2")


def contrast_pairs(tissues: Sequence[str]) -> list[Tuple[str, str]]:
    """Unordered tissue pairs in config order, e.g. (brain, heart)."""
    return list(combinations(tissues, 2))
