"""
Evaluation and visualization utilities for setpoint estimation.

Key functions:
- summarize_setpoint: dominant component, 95% interval, outlier share
- density_curves: per-component and total mixture densities on a grid
- candidates_frame: model selection table
- make_plots: time series band and distribution plots
"""

import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib import pyplot as plt

from .cumulative import CumulativePoint, cumulative_frame
from .model import MixtureModel, ScoredModel, gaussian_pdf


COMPONENT_COLORS = ['#e74c3c', '#2ecc71', '#f39c12']
DATA_COLOR = '#629DD1'
MIXTURE_COLOR = '#192024'


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def generate_range(lo: float, hi: float, steps: int) -> np.ndarray:
    """steps + 1 evenly spaced points from lo to hi inclusive."""
    step = (hi - lo) / steps
    return lo + step * np.arange(steps + 1)


def summarize_setpoint(model: MixtureModel, z_score: float = 1.96) -> Dict:
    """
    Describe the dominant component of a fitted model.

    Returns:
        dict with n_components, setpoint, std, ci_lower, ci_upper,
        weight, outlier_pct and an interpretation line (None for k=1)
    """
    idx = model.dominant_index()
    if idx is None:
        mean = variance = weight = float('nan')
    else:
        mean = model.means[idx]
        variance = model.variances[idx]
        weight = model.weights[idx]

    std = math.sqrt(variance) if variance >= 0 else float('nan')
    summary = {
        "n_components": model.component_count,
        "is_degenerate": model.is_degenerate,
        "setpoint": mean,
        "std": std,
        "ci_lower": mean - z_score * std,
        "ci_upper": mean + z_score * std,
        "weight": weight,
        "outlier_pct": 100.0 - weight * 100.0,
        "interpretation": None,
    }

    if model.component_count > 1:
        summary["interpretation"] = (
            f"{summary['outlier_pct']:.0f}% of values identified as outliers, "
            "potentially representing acute illness or measurement variability."
        )

    return summary


def format_summary(summary: Dict) -> str:
    """Plain-text setpoint report."""
    k = summary["n_components"]
    lines = [
        f"Identified Setpoint ({k}-component model)",
        f"  Setpoint:       {summary['setpoint']:.2f} x 10^3/uL",
        f"  Std. Deviation: {summary['std']:.2f}",
        f"  95% CI:         [{summary['ci_lower']:.2f}, {summary['ci_upper']:.2f}]",
        f"  % of values:    {summary['weight'] * 100:.1f}%",
    ]
    if summary["interpretation"]:
        lines.append("")
        lines.append(summary["interpretation"])
    return "\n".join(lines)


def density_curves(
    data: Sequence[float],
    model: MixtureModel,
    padding: float = 2.0,
    steps: int = 200,
) -> pd.DataFrame:
    """
    Weighted component densities and total mixture over [min - padding, max + padding].

    Columns: x, component_1..component_k, total
    """
    x = np.asarray(data, dtype=np.float64)
    grid = generate_range(float(x.min()) - padding, float(x.max()) + padding, steps)

    curves = {"x": grid}
    total = np.zeros_like(grid)
    with np.errstate(divide='ignore', invalid='ignore'):
        for i, (mean, variance, weight) in enumerate(zip(model.means, model.variances, model.weights)):
            y = weight * gaussian_pdf(grid, mean, np.sqrt(variance))
            curves[f"component_{i + 1}"] = y
            total = total + y
    curves["total"] = total

    return pd.DataFrame(curves)


def candidates_frame(
    candidates: Sequence[ScoredModel],
    selected: Optional[ScoredModel] = None,
) -> pd.DataFrame:
    """One row per candidate model, in evaluation order."""
    rows = []
    for cand in candidates:
        model = cand.model
        rows.append({
            "n_components": model.component_count,
            "bic": cand.bic,
            "log_likelihood": cand.log_likelihood,
            "max_weight": float(np.max(model.weights)),
            "passes_weight_constraint": cand.satisfies_dominance_constraint,
            "selected": cand is selected,
        })
    return pd.DataFrame(rows)


def make_plots(
    data: Sequence[float],
    model: MixtureModel,
    points: List[Optional[CumulativePoint]],
    reports_dir: str = "reports/setpoint",
    padding: float = 2.0,
    steps: int = 200,
    logger: Optional[logging.Logger] = None,
) -> Dict:
    """
    Generate the time series and distribution plots.

    Args:
        data: Measurements in order
        model: Selected mixture model
        points: Output of cumulative_fit for the same data
        reports_dir: Where to write images
        padding, steps: Density grid settings
        logger: Optional logger

    Returns:
        dict of written figure paths
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    out = Path(reports_dir)
    _ensure_dir(out)
    written = {}

    # 1) Time series with cumulative 95% band
    try:
        frame = cumulative_frame(data, points)
        band = frame.dropna(subset=["mean"])
        plt.figure(figsize=(10, 6))
        if not band.empty:
            plt.fill_between(band["measurement"], band["lower"], band["upper"],
                             color=DATA_COLOR, alpha=0.2, label="95% CI")
            plt.plot(band["measurement"], band["mean"], color="#000000", lw=2, label="Setpoint Mean")
        plt.plot(frame["measurement"], frame["value"], marker="o", color=DATA_COLOR, lw=2, label="WBC Values")
        plt.xlabel("Measurement Number")
        plt.ylabel("WBC Count (10^3/uL)")
        plt.title("WBC Count Time Series")
        plt.legend()
        path = out / "timeseries_setpoint.png"
        plt.tight_layout(); plt.savefig(path, dpi=150); plt.close()
        written["timeseries"] = str(path)
    except Exception as exc:
        logger.warning("Failed to plot time series: %s", exc)

    # 2) Mixture fit over a rug of the raw values
    try:
        curves = density_curves(data, model, padding=padding, steps=steps)
        plt.figure(figsize=(10, 6))
        for i, mean in enumerate(model.means):
            plt.plot(curves["x"], curves[f"component_{i + 1}"], lw=2,
                     color=COMPONENT_COLORS[i % len(COMPONENT_COLORS)],
                     label=f"Component {i + 1} (mu={mean:.2f})")
        plt.plot(curves["x"], curves["total"], lw=3, ls="--", color=MIXTURE_COLOR, label="Total Mixture")
        sns.rugplot(x=np.asarray(data, dtype=np.float64), height=0.05, color=DATA_COLOR, lw=2)
        k = model.component_count
        plt.xlabel("WBC Count (10^3/uL)")
        plt.ylabel("Probability Density")
        plt.title(f"GMM Fit ({k} component{'s' if k > 1 else ''})")
        plt.legend()
        path = out / "gmm_fit.png"
        plt.tight_layout(); plt.savefig(path, dpi=150); plt.close()
        written["distribution"] = str(path)
    except Exception as exc:
        logger.warning("Failed to plot mixture fit: %s", exc)

    return written
