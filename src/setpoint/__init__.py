"""
Haematologic setpoint estimation with univariate Gaussian mixtures.

Fits 1-3 component GMMs to a patient's WBC series, selects the model by BIC
under a dominant-weight constraint, and tracks the setpoint's 95% band as
measurements accrue.
"""

from .model import (
    MixtureModel,
    ScoredModel,
    gaussian_pdf,
    fit_gmm,
    small_sample_model,
    count_parameters,
    compute_bic,
    evaluate_candidates,
    select_model,
)
from .cumulative import CumulativePoint, cumulative_fit, cumulative_frame

__all__ = [
    "MixtureModel",
    "ScoredModel",
    "gaussian_pdf",
    "fit_gmm",
    "small_sample_model",
    "count_parameters",
    "compute_bic",
    "evaluate_candidates",
    "select_model",
    "CumulativePoint",
    "cumulative_fit",
    "cumulative_frame",
]
