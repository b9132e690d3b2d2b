"""
Setpoint Pipeline
values → model selection → cumulative band → summary → plots
"""

import logging
import sys
from typing import Dict, Optional, Sequence

import numpy as np

from .config import EMParams, load_config, setup_logging
from .cumulative import cumulative_fit
from .data import generate_sample_data, load_values, parse_values
from .evaluate import candidates_frame, format_summary, make_plots, summarize_setpoint
from .model import choose_best, evaluate_candidates, select_model


def resolve_values(config: Dict, logger: Optional[logging.Logger] = None) -> np.ndarray:
    """
    Measurements to fit: input.values text, else input.path CSV, else a
    generated sample series.
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    inp = config['input']
    lower = config['validation']['lower']
    upper = config['validation']['upper']

    if inp.get('values'):
        return parse_values(str(inp['values']), lower=lower, upper=upper)
    if inp.get('path'):
        return load_values(inp['path'], column=inp.get('column'), lower=lower, upper=upper, logger=logger)

    logger.info("No input configured, generating sample data (seed=%s)", config['sample']['seed'])
    return generate_sample_data(config['sample']['seed'], config['sample']['populations'])


def run_pipeline(
    values: Sequence[float],
    config: Dict,
    plots: bool = True,
    logger: Optional[logging.Logger] = None,
) -> Dict:
    """
    Fit the setpoint model and its cumulative band for one series.

    Args:
        values: Validated measurements
        config: Configuration dictionary (see config.DEFAULT_CONFIG)
        plots: Write figures to config['reports']['dir']
        logger: Optional logger

    Returns:
        dict with selected model, candidates table, cumulative points,
        summary and written figure paths
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    params = EMParams.from_config(config)
    sel = config['selection']
    cum = config['cumulative']
    x = np.asarray(values, dtype=np.float64)

    logger.info("Fitting setpoint model to %d values", len(x))

    if len(x) < sel['min_samples']:
        selected = select_model(
            x,
            max_components=sel['max_components'],
            min_dominant_weight=sel['min_dominant_weight'],
            min_samples=sel['min_samples'],
            params=params,
            logger=logger,
        )
        candidates = []
    else:
        candidates = evaluate_candidates(
            x, sel['max_components'], sel['min_dominant_weight'], params=params, logger=logger,
        )
        selected = choose_best(candidates)

    logger.info(
        "Selected %d-component model (BIC=%.2f, degenerate=%s)",
        selected.component_count, selected.bic, selected.model.is_degenerate,
    )

    points = cumulative_fit(
        x,
        min_points=cum['min_points'],
        min_samples=sel['min_samples'],
        z_score=cum['z_score'],
        max_components=sel['max_components'],
        min_dominant_weight=sel['min_dominant_weight'],
        params=params,
        logger=logger,
    )

    summary = summarize_setpoint(selected.model, z_score=cum['z_score'])

    figures = {}
    if plots:
        figures = make_plots(
            x,
            selected.model,
            points,
            reports_dir=config['reports']['dir'],
            padding=config['reports']['density_padding'],
            steps=config['reports']['density_steps'],
            logger=logger,
        )

    return {
        "values": x,
        "selected": selected,
        "candidates": candidates_frame(candidates, selected),
        "cumulative": points,
        "summary": summary,
        "figures": figures,
    }


def main(config_path: str = "config/setpoint.yaml") -> int:
    """Fit the configured series and print the setpoint report."""
    config = load_config(config_path)
    logger = setup_logging(config)

    print("=" * 80)
    print("WBC Setpoint Estimation")
    print("=" * 80)

    try:
        values = resolve_values(config, logger)
    except (ValueError, FileNotFoundError) as exc:
        logger.error(str(exc))
        return 1

    result = run_pipeline(values, config, logger=logger)

    if not result["candidates"].empty:
        print("\nCandidate models:")
        print(result["candidates"].to_string(index=False))

    print("\n" + format_summary(result["summary"]))

    for name, path in result["figures"].items():
        print(f"  {name}: {path}")

    print("\n" + "=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:2]))
