"""
Baselines component - Schedule snapshots and variance against them.
"""

from ._variance import compare_baseline, expected_percent
from .component import (
    run_compare_baseline,
    run_create_baseline,
    run_delete_baseline,
    run_get_baseline,
    run_list_baselines,
)
from .models import (
    BaselineListOutput,
    BaselineOutput,
    BaselineRefInput,
    CreateBaselineInput,
    DeleteOutput,
    ItemRef,
    ItemVariance,
    ListBaselinesInput,
    VarianceInput,
    VarianceOutput,
    VarianceReport,
    VarianceSummary,
)

__all__ = [
    "compare_baseline",
    "expected_percent",
    "run_create_baseline",
    "run_list_baselines",
    "run_get_baseline",
    "run_delete_baseline",
    "run_compare_baseline",
    "BaselineListOutput",
    "BaselineOutput",
    "BaselineRefInput",
    "CreateBaselineInput",
    "DeleteOutput",
    "ItemRef",
    "ItemVariance",
    "ListBaselinesInput",
    "VarianceInput",
    "VarianceOutput",
    "VarianceReport",
    "VarianceSummary",
]
