"""Shared fixtures: synthetic BRFSS-shaped data and a trained model."""

import copy

import numpy as np
import pandas as pd
import pytest

from brfss_diabetes.inference.scoring import load_scoring_context
from brfss_diabetes.models.train import run_pipeline

TRAIN_CONFIG = {
    "data": {"test_size": 0.3, "random_seed": 11},
    "model": {"random_state": 11},
    "cross_validation": {"n_splits": 3, "n_jobs": 1},
    "candidates": {
        "logistic": {
            "feature_sets": {
                "main_effects": ["BMI", "PhysActivity", "HighBP", "Sex"],
                "bmi_bp_interaction": ["BMI", "PhysActivity", "HighBP", "Sex", "BMI:HighBP"],
                "quadratic_bmi": ["BMI", "BMI^2", "PhysActivity", "HighBP", "Sex", "PhysActivity:Sex"],
            },
            "param_grid": {"C": [0.1, 10000.0]},
        },
        "tree": {"param_grid": {"ccp_alpha": [0.0, 0.001], "min_samples_leaf": [20, 60]}},
        "forest": {
            "n_estimators": 25,
            "param_grid": {"max_features": [2, 4], "min_samples_leaf": [20]},
        },
    },
    "mlflow": {"enabled": False},
}


def make_brfss_frame(n=1200, seed=7):
    """Generate records shaped like the BRFSS 2015 health indicators file."""
    rng = np.random.default_rng(seed)

    bmi = np.clip(rng.normal(28.5, 6.5, n).round(), 12, 80)
    high_bp = rng.binomial(1, 0.43, n)
    phys_activity = rng.binomial(1, 0.75, n)
    sex = rng.binomial(1, 0.44, n)

    logit = -2.4 + 0.09 * (bmi - 28.5) + 1.3 * high_bp - 0.4 * phys_activity + 0.2 * sex
    outcome = rng.binomial(1, 1 / (1 + np.exp(-logit)))

    return pd.DataFrame(
        {
            "Diabetes_binary": outcome.astype(float),
            "HighBP": high_bp.astype(float),
            "HighChol": rng.binomial(1, 0.42, n).astype(float),
            "BMI": bmi,
            "Smoker": rng.binomial(1, 0.44, n).astype(float),
            "PhysActivity": phys_activity.astype(float),
            "Sex": sex.astype(float),
            "Age": rng.integers(1, 14, n).astype(float),
        }
    )


@pytest.fixture
def train_config():
    return copy.deepcopy(TRAIN_CONFIG)


@pytest.fixture
def brfss_frame():
    return make_brfss_frame()


@pytest.fixture
def dataset_path(tmp_path, brfss_frame):
    path = tmp_path / "brfss.csv"
    brfss_frame.to_csv(path, index=False)
    return path


@pytest.fixture(scope="session")
def trained_model(tmp_path_factory):
    """Run model selection once and share (report, data_path, model_path)."""
    workdir = tmp_path_factory.mktemp("pipeline")
    data_path = workdir / "brfss.csv"
    make_brfss_frame().to_csv(data_path, index=False)

    model_path = workdir / "model" / "best_model.joblib"
    report = run_pipeline(copy.deepcopy(TRAIN_CONFIG), data_path=data_path, output_path=model_path)
    return report, data_path, model_path


@pytest.fixture(scope="session")
def scoring_context(trained_model):
    _, data_path, model_path = trained_model
    return load_scoring_context(model_path, data_path)
