from functools import lru_cache

import pandas as pd


@lru_cache(maxsize=1)
def _prep_deseq2():
    """Lazily prepare the R DESeq2 runtime.

    Returns:
        Tuple[Any, Any, Any]: A tuple ``(ro, deseq2_pkg, base_pkg)`` where
        ``ro`` is ``rpy2.robjects`` and the packages are imported via
        ``importr``.

    Notes:
        The result is cached (LRU) to avoid repeated imports.
    """
    import rpy2.robjects as ro
    from rpy2.robjects.packages import importr

    deseq2_pkg = importr("DESeq2")
    base_pkg = importr("base")
    return ro, deseq2_pkg, base_pkg


def pandas_to_r(df: pd.DataFrame):
    """Convert a pandas DataFrame to an R data.frame (categoricals become factors)."""
    import rpy2.robjects as ro
    from rpy2.robjects import pandas2ri
    from rpy2.robjects.conversion import localconverter, get_conversion

    with localconverter(ro.default_converter + pandas2ri.converter):
        return get_conversion().py2rpy(df)


def r_to_pandas(robj) -> pd.DataFrame:
    """Convert an R data.frame to pandas."""
    import rpy2.robjects as ro
    from rpy2.robjects import pandas2ri
    from rpy2.robjects.conversion import localconverter, get_conversion

    with localconverter(ro.default_converter + pandas2ri.converter):
        return get_conversion().rpy2py(robj)
