"""Held-out evaluation report for a persisted diabetes model."""

import argparse
import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.metrics import classification_report, roc_auc_score

from brfss_diabetes.config.constants import NEGATIVE_LABEL, POSITIVE_LABEL
from brfss_diabetes.inference.scoring import load_model_artifacts
from brfss_diabetes.models.candidates import positive_class_proba
from brfss_diabetes.models.train import baseline_log_loss, load_data, log_loss_score, split_data

logger = logging.getLogger(__name__)


def generate_calibration_table(y_true, y_proba, output_path, n_bins=10):
    """Compare mean predicted probability with the observed rate per decile.

    Args:
        y_true: True labels
        y_proba: Predicted positive-class probabilities
        output_path: Path to save CSV
        n_bins: Number of quantile bins

    Returns:
        Calibration dataframe
    """
    frame = pd.DataFrame(
        {
            "predicted": np.asarray(y_proba, dtype=float),
            "observed": (np.asarray(y_true) == POSITIVE_LABEL).astype(int),
        }
    )
    # duplicates="drop" collapses bins for models with few distinct probabilities
    frame["bin"] = pd.qcut(frame["predicted"], q=n_bins, labels=False, duplicates="drop")

    table = (
        frame.groupby("bin")
        .agg(
            n=("observed", "size"),
            mean_predicted=("predicted", "mean"),
            observed_rate=("observed", "mean"),
        )
        .reset_index()
    )
    table.to_csv(output_path, index=False)

    logger.info(f"Calibration table saved to: {output_path}")
    return table


def generate_evaluation_report(model_path: Path, data_path: Path, output_dir: Path) -> dict:
    """Score the stored model on its held-out split and write report files.

    The split is reproduced from the configuration stored in the artifact,
    so the rows scored are the ones the pipeline held out.

    Args:
        model_path: Path to model artifact
        data_path: Path to the BRFSS CSV
        output_dir: Directory to save evaluation outputs

    Returns:
        Summary dictionary
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    artifacts = load_model_artifacts(model_path)
    model = artifacts["model"]

    df = load_data(data_path)
    _, X_test, y_train, y_test = split_data(df, artifacts["config"])

    y_proba = positive_class_proba(model, X_test)
    y_pred = np.where(y_proba >= 0.5, POSITIVE_LABEL, NEGATIVE_LABEL)

    print("\n" + "=" * 60)
    print("CLASSIFICATION REPORT (threshold 0.5)")
    print("=" * 60)
    print(
        classification_report(
            y_test, y_pred, labels=[NEGATIVE_LABEL, POSITIVE_LABEL], zero_division=0
        )
    )

    generate_calibration_table(y_test, y_proba, output_dir / "calibration.csv")

    y_binary = (np.asarray(y_test) == POSITIVE_LABEL).astype(int)
    summary = {
        "model_path": str(model_path),
        "data_path": str(data_path),
        "family": artifacts["family"],
        "candidate": artifacts.get("candidate"),
        "test_samples": len(y_test),
        "positive_rate": float(y_binary.mean()),
        "log_loss": log_loss_score(y_test, y_proba),
        "baseline_log_loss": baseline_log_loss(y_train, y_test),
        "roc_auc": float(roc_auc_score(y_binary, y_proba)),
        "evaluation_date": pd.Timestamp.now().isoformat(),
    }

    with open(output_dir / "evaluation_summary.json", "w") as f:
        json.dump(summary, f, indent=2)

    print(f"\nEvaluation complete. Results saved to: {output_dir}")
    return summary


def main():
    """CLI entry point for model evaluation."""
    parser = argparse.ArgumentParser(description="Evaluate the selected diabetes model")
    parser.add_argument(
        "--model-path",
        type=Path,
        default=Path("model/best_model.joblib"),
        help="Path to model artifact",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=Path("data/diabetes_binary_health_indicators_BRFSS2015.csv"),
        help="Path to the dataset",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=Path("reports/model_evaluation"), help="Output directory"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    generate_evaluation_report(args.model_path, args.data, args.output_dir)
    return 0


if __name__ == "__main__":
    exit(main())
