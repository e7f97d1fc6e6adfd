"""Tests for the held-out evaluation report."""

import json

import pandas as pd
import pytest

from brfss_diabetes.models.evaluate import generate_evaluation_report


class TestEvaluationReport:
    """Test report generation for a trained model."""

    def test_report_reproduces_held_out_loss(self, trained_model, tmp_path):
        report, data_path, model_path = trained_model

        summary = generate_evaluation_report(model_path, data_path, tmp_path / "eval")

        assert summary["family"] == report.selected_family
        assert summary["log_loss"] == pytest.approx(report.test_log_loss[report.selected_family])
        assert summary["log_loss"] < summary["baseline_log_loss"]
        assert 0.5 < summary["roc_auc"] <= 1.0

    def test_report_files_written(self, trained_model, tmp_path):
        _, data_path, model_path = trained_model
        output_dir = tmp_path / "eval"

        generate_evaluation_report(model_path, data_path, output_dir)

        calibration = pd.read_csv(output_dir / "calibration.csv")
        assert calibration["n"].sum() == 360
        assert calibration["observed_rate"].between(0, 1).all()

        summary = json.loads((output_dir / "evaluation_summary.json").read_text())
        assert summary["test_samples"] == 360
