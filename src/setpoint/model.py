"""
Model utilities for univariate GMM setpoint estimation.

Functions:
- gaussian_pdf: univariate normal density
- fit_gmm: EM fit of a k-component 1D mixture
- small_sample_model: mean/variance fallback for short series
- compute_bic / count_parameters: BIC scoring
- evaluate_candidates / select_model: k = 1..3 model selection under the
  dominant-weight constraint
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import EMParams


@dataclass(frozen=True)
class MixtureModel:
    component_count: int
    means: Tuple[float, ...]
    variances: Tuple[float, ...]
    weights: Tuple[float, ...]
    is_degenerate: bool = False

    def dominant_index(self) -> Optional[int]:
        """Index of the largest weight (first on ties), None if weights are NaN."""
        weights = np.asarray(self.weights, dtype=np.float64)
        if np.isnan(weights).any():
            return None
        return int(np.argmax(weights))


@dataclass(frozen=True)
class ScoredModel:
    model: MixtureModel
    bic: float
    log_likelihood: float
    satisfies_dominance_constraint: bool

    @property
    def component_count(self) -> int:
        return self.model.component_count


def gaussian_pdf(x, mean, std):
    """Univariate normal density; broadcasts over numpy arrays."""
    x = np.asarray(x, dtype=np.float64)
    mean = np.asarray(mean, dtype=np.float64)
    std = np.asarray(std, dtype=np.float64)
    coefficient = 1.0 / (std * np.sqrt(2.0 * np.pi))
    exponent = -((x - mean) ** 2) / (2.0 * std ** 2)
    return coefficient * np.exp(exponent)


def initialize_means(data: np.ndarray, k: int) -> np.ndarray:
    """Seed component means at evenly spaced order statistics."""
    sorted_data = np.sort(np.asarray(data, dtype=np.float64))
    n = len(sorted_data)

    if k == 1:
        idx = [n // 2]
    elif k == 2:
        idx = [n // 3, (2 * n) // 3]
    else:
        idx = [((j + 1) * n) // (k + 1) for j in range(k)]

    return sorted_data[idx].copy()


def log_likelihood(
    data: np.ndarray,
    means: Sequence[float],
    variances: Sequence[float],
    weights: Sequence[float],
    epsilon: float = 1e-10,
) -> float:
    """Total log-likelihood of data under the mixture."""
    x = np.asarray(data, dtype=np.float64)[:, None]
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        dens = np.asarray(weights) * gaussian_pdf(x, np.asarray(means), np.sqrt(np.asarray(variances)))
        return float(np.sum(np.log(dens.sum(axis=1) + epsilon)))


def _to_model(k: int, means, variances, weights, is_degenerate: bool = False) -> MixtureModel:
    return MixtureModel(
        component_count=k,
        means=tuple(float(v) for v in means),
        variances=tuple(float(v) for v in variances),
        weights=tuple(float(v) for v in weights),
        is_degenerate=is_degenerate,
    )


def fit_gmm(
    data: Sequence[float],
    k: int,
    params: EMParams = EMParams(),
    logger: Optional[logging.Logger] = None,
) -> MixtureModel:
    """
    Fit a k-component univariate Gaussian mixture with EM.

    A component that receives no responsibility divides by zero and carries
    NaN/inf parameters in the result. Iteration stops early once the
    log-likelihood is NaN, keeping the parameters of that step.

    Args:
        data: Positive measurements (len >= 1)
        k: Number of components
        params: EM iteration limits
        logger: Optional logger

    Returns:
        Fitted MixtureModel
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    x = np.asarray(data, dtype=np.float64)
    n = len(x)

    means = initialize_means(x, k)
    variances = np.ones(k)
    weights = np.full(k, 1.0 / k)

    prev_llk = -np.inf
    n_iter = 0
    with np.errstate(divide='ignore', invalid='ignore', over='ignore', under='ignore'):
        for n_iter in range(1, params.max_iter + 1):
            # E-step
            dens = weights * gaussian_pdf(x[:, None], means, np.sqrt(variances))
            resp = dens / (dens.sum(axis=1, keepdims=True) + params.epsilon)

            # M-step
            nk = resp.sum(axis=0)
            weights = nk / n
            means = (resp * x[:, None]).sum(axis=0) / nk
            variances = (resp * (x[:, None] - means) ** 2).sum(axis=0) / nk

            llk = log_likelihood(x, means, variances, weights, params.epsilon)
            if math.isnan(llk):
                logger.debug("EM k=%d: log-likelihood is NaN at iteration %d", k, n_iter)
                break
            if abs(llk - prev_llk) < params.tolerance:
                break
            prev_llk = llk

    logger.debug("EM k=%d finished after %d iterations (n=%d)", k, n_iter, n)
    return _to_model(k, means, variances, weights)


def small_sample_model(data: Sequence[float]) -> MixtureModel:
    """Single-component mean/sample-variance model; variance is NaN for n < 3."""
    x = np.asarray(data, dtype=np.float64)
    n = len(x)
    mean = float(x.sum() / n)

    variance = float('nan')
    if n >= 3:
        variance = float(np.sum((x - mean) ** 2) / (n - 1))

    return _to_model(1, [mean], [variance], [1.0], is_degenerate=True)


def count_parameters(k: int) -> int:
    """k means + k variances + (k - 1) free weights."""
    return k + k + (k - 1)


def compute_bic(llk: float, n: int, k: int) -> float:
    return -2.0 * llk + count_parameters(k) * math.log(n)


def score_model(
    data: Sequence[float],
    model: MixtureModel,
    min_dominant_weight: float = 0.5,
    epsilon: float = 1e-10,
) -> ScoredModel:
    """Attach log-likelihood, BIC and the dominant-weight check to a fit."""
    x = np.asarray(data, dtype=np.float64)
    llk = log_likelihood(x, model.means, model.variances, model.weights, epsilon)
    # NaN weights fail the check
    max_weight = float(np.max(model.weights))
    return ScoredModel(
        model=model,
        bic=compute_bic(llk, len(x), model.component_count),
        log_likelihood=llk,
        satisfies_dominance_constraint=bool(max_weight >= min_dominant_weight),
    )


def evaluate_candidates(
    data: Sequence[float],
    max_components: int = 3,
    min_dominant_weight: float = 0.5,
    params: EMParams = EMParams(),
    logger: Optional[logging.Logger] = None,
) -> List[ScoredModel]:
    """Fit and score k = 1..max_components, in that order."""
    if logger is None:
        logger = logging.getLogger(__name__)

    candidates: List[ScoredModel] = []
    for k in range(1, max_components + 1):
        model = fit_gmm(data, k, params=params, logger=logger)
        scored = score_model(data, model, min_dominant_weight, params.epsilon)
        logger.debug(
            "Candidate k=%d: BIC=%.3f LLK=%.3f max weight=%.3f constraint=%s",
            k, scored.bic, scored.log_likelihood, max(model.weights),
            scored.satisfies_dominance_constraint,
        )
        candidates.append(scored)
    return candidates


def choose_best(candidates: Sequence[ScoredModel]) -> ScoredModel:
    """
    Lowest BIC among constraint-satisfying candidates; strict '<' keeps the
    earliest on ties. Falls back to the first candidate (k=1) if none pass.
    """
    best: Optional[ScoredModel] = None
    for cand in candidates:
        if not cand.satisfies_dominance_constraint:
            continue
        if best is None or cand.bic < best.bic:
            best = cand
    return best if best is not None else candidates[0]


def select_model(
    data: Sequence[float],
    max_components: int = 3,
    min_dominant_weight: float = 0.5,
    min_samples: int = 5,
    params: EMParams = EMParams(),
    logger: Optional[logging.Logger] = None,
) -> ScoredModel:
    """
    Pick the setpoint model for a series of measurements.

    Series shorter than min_samples get the degenerate mean/variance model
    (BIC and log-likelihood are NaN). Otherwise candidates k = 1..max_components
    are fitted and the best is chosen by BIC under the dominant-weight
    constraint.

    Args:
        data: Measurements (len >= 1)
        max_components: Largest k to try
        min_dominant_weight: Minimum weight of the largest component
        min_samples: Below this, skip EM entirely
        params: EM iteration limits
        logger: Optional logger

    Returns:
        Selected ScoredModel
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    if len(data) < min_samples:
        model = small_sample_model(data)
        logger.debug("Only %d values, using sample mean/variance", len(data))
        return ScoredModel(
            model=model,
            bic=float('nan'),
            log_likelihood=float('nan'),
            satisfies_dominance_constraint=bool(max(model.weights) >= min_dominant_weight),
        )

    candidates = evaluate_candidates(
        data, max_components, min_dominant_weight, params=params, logger=logger,
    )
    best = choose_best(candidates)

    if not any(c.satisfies_dominance_constraint for c in candidates):
        logger.debug("No candidate has a dominant component, falling back to k=1")

    logger.debug("Selected k=%d (BIC=%.3f)", best.component_count, best.bic)
    return best
