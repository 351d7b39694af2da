"""
Library-wide default values.

Functions that accept one of these settings take it as an explicit keyword
argument; the values here are only used when the argument is omitted.
"""

import sys
from dataclasses import dataclass


@dataclass
class Defaults:
    """
    Default numeric settings.

    Attributes:
        tolerance: Tolerance for equals_2d / equals_3d / is_closed_by
        polylabel_precision: Precision of the polylabel search (input units)
        wkt_decimals: Decimals for WKT output (None = round-trip precision)
    """

    tolerance: float = sys.float_info.epsilon
    polylabel_precision: float = 1.0
    wkt_decimals: int | None = None


DEFAULTS = Defaults()
