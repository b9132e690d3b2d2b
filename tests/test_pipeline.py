"""Tests for configuration loading and the end-to-end pipeline."""

import copy

import numpy as np
import pytest
import yaml

from setpoint.config import DEFAULT_CONFIG, EMParams, load_config
from setpoint.pipeline import main, resolve_values, run_pipeline


@pytest.fixture
def config(tmp_path) -> dict:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg['reports']['dir'] = str(tmp_path / "reports")
    cfg['logging']['log_file'] = str(tmp_path / "logs" / "setpoint.log")
    return cfg


def test_load_config_defaults(tmp_path):
    cfg = load_config(str(tmp_path / "missing.yaml"))
    assert cfg == DEFAULT_CONFIG
    assert cfg is not DEFAULT_CONFIG


def test_load_config_merges_overrides(tmp_path):
    path = tmp_path / "setpoint.yaml"
    path.write_text(yaml.dump({'em': {'max_iter': 10}, 'selection': {'max_components': 2}}))

    cfg = load_config(str(path))
    assert cfg['em']['max_iter'] == 10
    assert cfg['em']['tolerance'] == DEFAULT_CONFIG['em']['tolerance']
    assert cfg['selection']['max_components'] == 2
    assert cfg['selection']['min_samples'] == 5


def test_em_params_from_config():
    params = EMParams.from_config({'em': {'max_iter': 25}})
    assert params == EMParams(max_iter=25, tolerance=0.001, epsilon=1e-10)


def test_resolve_values_from_text(config):
    config['input']['values'] = "5.5, 6.0, 6.5"
    np.testing.assert_allclose(resolve_values(config), [5.5, 6.0, 6.5])


def test_resolve_values_generates_sample(config):
    values = resolve_values(config)
    assert len(values) == 18


def test_run_pipeline(config, dominant_data):
    result = run_pipeline(dominant_data, config, plots=False)

    assert result["candidates"]["n_components"].tolist() == [1, 2, 3]
    assert result["candidates"]["selected"].sum() == 1
    assert len(result["cumulative"]) == len(dominant_data)
    assert result["summary"]["setpoint"] == pytest.approx(6.0, abs=1.0)
    assert result["figures"] == {}


def test_run_pipeline_small_sample(config):
    result = run_pipeline([5.0, 7.0], config, plots=False)

    assert result["selected"].model.is_degenerate
    assert result["candidates"].empty
    assert result["cumulative"] == [None, None]


def test_main(tmp_path, config, capsys):
    config['input']['values'] = "5.8, 6.1, 6.4, 5.9, 6.2, 5.7, 13.2"
    path = tmp_path / "setpoint.yaml"
    path.write_text(yaml.dump(config))

    assert main(str(path)) == 0
    out = capsys.readouterr().out
    assert "Identified Setpoint" in out
    assert (tmp_path / "reports" / "gmm_fit.png").exists()


def test_main_rejects_invalid_input(tmp_path, config):
    config['input']['values'] = "5.8, abc"
    path = tmp_path / "setpoint.yaml"
    path.write_text(yaml.dump(config))

    assert main(str(path)) == 1
