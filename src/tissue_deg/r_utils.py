"""R dependency management for the optional R DESeq2 engine."""

from __future__ import annotations
import logging
from typing import Sequence

logger = logging.getLogger(__name__)

# Track which packages have been checked
_checked_packages: set = set()

R_ENGINE_PACKAGES = ["DESeq2"]


def _import_rpy2_packages():
    try:
        import rpy2.robjects.packages as rpackages
    except ImportError:
        raise ImportError(
            "rpy2 is not installed. Please install it via "
            "'pip install tissue-deg[r]' to use the R DESeq2 engine."
        )
    return rpackages


def missing_r_packages(packages: Sequence[str]) -> list:
    """Return the subset of ``packages`` that is not installed in R."""
    rpackages = _import_rpy2_packages()
    return [pkg for pkg in packages if not rpackages.isinstalled(pkg)]


def ensure_r_dependencies(packages: Sequence[str] = R_ENGINE_PACKAGES) -> None:
    """
    Checks if required R packages are installed.
    If not, attempts to install them using BiocManager via rpy2.

    Args:
        packages: Sequence of R package names to check/install.
            e.g., ["DESeq2"]

    Example:
        >>> ensure_r_dependencies(["DESeq2"])
    """
    global _checked_packages

    # Filter to only packages we haven't checked yet
    packages_to_check = [pkg for pkg in packages if pkg not in _checked_packages]
    if not packages_to_check:
        return

    rpackages = _import_rpy2_packages()
    from rpy2.robjects.vectors import StrVector

    missing_pkgs = [pkg for pkg in packages_to_check if not rpackages.isinstalled(pkg)]

    if missing_pkgs:
        logger.warning(f"Missing R packages detected: {', '.join(missing_pkgs)}")
        logger.info("Attempting to install via BiocManager...")

        utils = rpackages.importr('utils')
        utils.chooseCRANmirror(ind=1)  # Select first mirror automatically

        # Ensure BiocManager is installed
        if not rpackages.isinstalled("BiocManager"):
            utils.install_packages(StrVector(["BiocManager"]))

        bioc_manager = rpackages.importr("BiocManager")
        bioc_manager.install(StrVector(missing_pkgs), ask=False)

        still_missing = [pkg for pkg in missing_pkgs if not rpackages.isinstalled(pkg)]
        if still_missing:
            raise RuntimeError(f"Failed to install R packages: {', '.join(still_missing)}")
        logger.info("R packages installed successfully.")

    # Mark all requested packages as checked
    _checked_packages.update(packages_to_check)
