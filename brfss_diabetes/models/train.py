"""Model-selection pipeline for BRFSS diabetes prediction.

Trains the logistic, pruned-tree and random-forest candidates under k-fold
cross-validation, compares each family's winner on a held-out split by
log-loss and persists the single best model.
"""

import argparse
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import joblib
import mlflow
import numpy as np
import pandas as pd
from sklearn.metrics import log_loss
from sklearn.model_selection import GridSearchCV, StratifiedKFold, train_test_split

from brfss_diabetes.config.constants import (
    DEFAULT_DATA_PATH,
    DEFAULT_MODEL_PATH,
    FEATURE_COLUMNS,
    METADATA_FILENAME,
    POSITIVE_LABEL,
    TARGET_COLUMN,
    TEST_PREDICTIONS_FILENAME,
)
from brfss_diabetes.config.settings import configure_logging, load_config
from brfss_diabetes.data.validate_input import DiabetesDataValidator
from brfss_diabetes.features.encoding import encode_dataset, encoding_scheme
from brfss_diabetes.models.candidates import (
    CandidateResult,
    CandidateSpec,
    ModelFamily,
    build_candidates,
)

logger = logging.getLogger(__name__)


@dataclass
class SelectionReport:
    """Outcome of one model-selection run."""

    selected_family: str
    selected_candidate: str
    candidate_cv_log_loss: Dict[str, float]
    family_cv_log_loss: Dict[str, float]
    test_log_loss: Dict[str, float]
    baseline_log_loss: float
    model_path: str
    best_params: Dict[str, object] = field(default_factory=dict)


def load_data(data_path: Path) -> pd.DataFrame:
    """Load, validate and encode the dataset.

    Args:
        data_path: Path to the BRFSS CSV

    Returns:
        Encoded dataframe without incomplete rows
    """
    validator = DiabetesDataValidator()
    df = validator.validate_file(data_path)

    incomplete = validator.count_incomplete_rows(df)
    if incomplete:
        logger.warning(f"Dropping {incomplete} rows with missing model columns")
        df = df.dropna(subset=[TARGET_COLUMN] + FEATURE_COLUMNS).reset_index(drop=True)

    return encode_dataset(df)


def split_data(df: pd.DataFrame, config: dict) -> tuple:
    """Stratified train/test split on the target.

    Args:
        df: Encoded dataframe
        config: Training configuration

    Returns:
        Tuple of (X_train, X_test, y_train, y_test)
    """
    X = df[FEATURE_COLUMNS]
    y = df[TARGET_COLUMN].astype(str)

    X_train, X_test, y_train, y_test = train_test_split(
        X,
        y,
        test_size=config["data"].get("test_size", 0.3),
        random_state=config["data"]["random_seed"],
        stratify=y,
    )

    logger.info(f"Train size: {len(X_train)}, Test size: {len(X_test)}")
    logger.info(f"Train positive rate: {(y_train == POSITIVE_LABEL).mean():.3f}")
    logger.info(f"Test positive rate: {(y_test == POSITIVE_LABEL).mean():.3f}")

    return X_train, X_test, y_train, y_test


def log_loss_score(y_true, positive_proba) -> float:
    """Mean negative log-likelihood of the true labels.

    Args:
        y_true: Labels ("No"/"Yes")
        positive_proba: Predicted probability of the positive label

    Returns:
        Log-loss (lower is better)
    """
    y_binary = (np.asarray(y_true) == POSITIVE_LABEL).astype(int)
    return float(log_loss(y_binary, np.asarray(positive_proba, dtype=float), labels=[0, 1]))


def baseline_log_loss(y_reference, y_true=None) -> float:
    """Log-loss of always predicting the positive base rate of ``y_reference``."""
    y_true = y_reference if y_true is None else y_true
    base_rate = float((np.asarray(y_reference) == POSITIVE_LABEL).mean())
    return log_loss_score(y_true, np.full(len(y_true), base_rate))


def cross_validate_candidates(
    candidates: List[CandidateSpec], X_train, y_train, config: dict
) -> List[CandidateResult]:
    """Grid-search every candidate under stratified k-fold cross-validation.

    Args:
        candidates: Candidate specifications
        X_train, y_train: Training subset
        config: Training configuration

    Returns:
        One result per candidate, refit on the full training subset
    """
    cv_config = config.get("cross_validation", {})
    seed = config["model"]["random_state"]
    folds = StratifiedKFold(
        n_splits=cv_config.get("n_splits", 5), shuffle=True, random_state=seed
    )

    results = []
    for spec in candidates:
        search = GridSearchCV(
            spec.build_estimator(seed),
            spec.search_grid(),
            scoring="neg_log_loss",
            cv=folds,
            refit=True,
            n_jobs=cv_config.get("n_jobs", 1),
        )
        search.fit(X_train, y_train)

        best_params = {
            name.replace("classifier__", ""): value for name, value in search.best_params_.items()
        }
        result = CandidateResult(
            spec=spec,
            estimator=search.best_estimator_,
            best_params=best_params,
            cv_log_loss=float(-search.best_score_),
        )
        logger.info(f"{spec.name}: CV log-loss {result.cv_log_loss:.4f} with {best_params}")
        results.append(result)

    return results


def select_family_winners(results: List[CandidateResult]) -> Dict[ModelFamily, CandidateResult]:
    """Keep the candidate with the lowest CV log-loss within each family."""
    winners = {}
    for result in results:
        current = winners.get(result.family)
        if current is None or result.cv_log_loss < current.cv_log_loss:
            winners[result.family] = result
    return {family: winners[family] for family in ModelFamily if family in winners}


def evaluate_on_test(
    winners: Dict[ModelFamily, CandidateResult], X_test, y_test
) -> Dict[ModelFamily, float]:
    """Score each family winner on the held-out subset by log-loss."""
    scores = {}
    for family, result in winners.items():
        scores[family] = log_loss_score(y_test, result.predict_positive_proba(X_test))
        logger.info(f"{family.value}: test log-loss {scores[family]:.4f}")
    return scores


def select_best_family(test_scores: Dict[ModelFamily, float]) -> ModelFamily:
    """Family with the minimum held-out log-loss; ties go to the earlier family."""
    if not test_scores:
        raise ValueError("No candidate families were evaluated")
    order = list(ModelFamily)
    return min(test_scores, key=lambda family: (test_scores[family], order.index(family)))


def save_model_artifacts(
    result: CandidateResult,
    test_log_loss: float,
    config: dict,
    model_path: Path,
    X_test,
    y_test,
) -> Path:
    """Persist the selected model, its metadata and held-out predictions.

    Args:
        result: Selected candidate
        test_log_loss: Held-out log-loss of the selected candidate
        config: Training configuration
        model_path: Destination of the joblib artifact
        X_test, y_test: Held-out subset used for the predictions file

    Returns:
        Path of the written artifact
    """
    model_path = Path(model_path)
    model_path.parent.mkdir(parents=True, exist_ok=True)

    model_artifacts = {
        "model": result.estimator,
        "family": result.family.value,
        "candidate": result.spec.name,
        "terms": list(result.spec.terms),
        "best_params": result.best_params,
        "encoding": encoding_scheme(),
        "positive_label": POSITIVE_LABEL,
        "cv_log_loss": result.cv_log_loss,
        "test_log_loss": test_log_loss,
        "config": config,
    }
    joblib.dump(model_artifacts, model_path)

    timestamp = datetime.now()
    metadata = {
        "version": timestamp.strftime("%Y%m%d_%H%M%S"),
        "family": result.family.value,
        "candidate": result.spec.name,
        "terms": list(result.spec.terms),
        "best_params": {k: _json_safe(v) for k, v in result.best_params.items()},
        "cv_log_loss": result.cv_log_loss,
        "test_log_loss": test_log_loss,
        "encoding": encoding_scheme(),
        "training_date": timestamp.isoformat(),
        "data_path": str(config["data"].get("raw_path", "")),
    }
    with open(model_path.parent / METADATA_FILENAME, "w") as f:
        json.dump(metadata, f, indent=2)

    predictions = X_test.copy()
    for col in predictions.columns:
        if isinstance(predictions[col].dtype, pd.CategoricalDtype):
            predictions[col] = predictions[col].astype(str)
    predictions[TARGET_COLUMN] = np.asarray(y_test)
    predictions["prob_diabetes"] = result.predict_positive_proba(X_test)
    predictions.to_csv(model_path.parent / TEST_PREDICTIONS_FILENAME, index=False)

    logger.info(f"Model saved to: {model_path}")
    return model_path


def _json_safe(value):
    if isinstance(value, np.generic):
        return value.item()
    return value


def run_pipeline(
    config: dict, data_path: Optional[Path] = None, output_path: Optional[Path] = None
) -> SelectionReport:
    """Run model selection end to end.

    Args:
        config: Training configuration
        data_path: Dataset override (defaults to ``data.raw_path``)
        output_path: Artifact path override (defaults to ``output.model_path``)

    Returns:
        SelectionReport describing the run
    """
    data_path = Path(data_path or config["data"].get("raw_path", DEFAULT_DATA_PATH))
    model_path = Path(
        output_path or config.get("output", {}).get("model_path", DEFAULT_MODEL_PATH)
    )

    df = load_data(data_path)
    X_train, X_test, y_train, y_test = split_data(df, config)

    candidates = build_candidates(config)
    results = cross_validate_candidates(candidates, X_train, y_train, config)
    winners = select_family_winners(results)
    test_scores = evaluate_on_test(winners, X_test, y_test)

    best_family = select_best_family(test_scores)
    best = winners[best_family]
    baseline = baseline_log_loss(y_train, y_test)
    logger.info(
        f"Selected {best.spec.name} with test log-loss {test_scores[best_family]:.4f} "
        f"(base-rate baseline {baseline:.4f})"
    )

    save_model_artifacts(best, test_scores[best_family], config, model_path, X_test, y_test)

    report = SelectionReport(
        selected_family=best_family.value,
        selected_candidate=best.spec.name,
        candidate_cv_log_loss={r.spec.name: r.cv_log_loss for r in results},
        family_cv_log_loss={f.value: r.cv_log_loss for f, r in winners.items()},
        test_log_loss={f.value: score for f, score in test_scores.items()},
        baseline_log_loss=baseline,
        model_path=str(model_path),
        best_params={k: _json_safe(v) for k, v in best.best_params.items()},
    )

    if config.get("mlflow", {}).get("enabled", False):
        log_to_mlflow(report, config)

    return report


def log_to_mlflow(report: SelectionReport, config: dict) -> None:
    """Record a selection run's parameters, scores and artifact in MLflow."""
    mlflow_config = config["mlflow"]
    experiment_name = mlflow_config["experiment_name"]
    mlflow.set_tracking_uri(mlflow_config["tracking_uri"])

    artifact_location = mlflow_config.get("artifact_location")
    if artifact_location and mlflow.get_experiment_by_name(experiment_name) is None:
        mlflow.create_experiment(
            experiment_name, artifact_location=Path(artifact_location).resolve().as_uri()
        )
    mlflow.set_experiment(experiment_name)

    with mlflow.start_run():
        mlflow.log_params(config["data"])
        mlflow.log_params(config.get("cross_validation", {}))
        mlflow.log_param("selected_family", report.selected_family)
        mlflow.log_param("selected_candidate", report.selected_candidate)
        mlflow.log_params({f"best_{k}": v for k, v in report.best_params.items()})

        metrics = {f"cv_log_loss_{name}": v for name, v in report.candidate_cv_log_loss.items()}
        metrics.update({f"test_log_loss_{name}": v for name, v in report.test_log_loss.items()})
        metrics["baseline_log_loss"] = report.baseline_log_loss
        mlflow.log_metrics(metrics)

        mlflow.log_artifact(report.model_path)
        mlflow.log_artifact(str(Path(report.model_path).parent / METADATA_FILENAME))

        logger.info(f"MLflow run ID: {mlflow.active_run().info.run_id}")


def main():
    """Main training pipeline."""
    parser = argparse.ArgumentParser(description="Select and train the diabetes prediction model")
    parser.add_argument(
        "--config", type=Path, default=Path("configs/train_config.yaml"), help="Config file path"
    )
    parser.add_argument("--data", type=Path, default=None, help="Dataset path override")
    parser.add_argument("--output", type=Path, default=None, help="Model artifact path override")
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config)

    report = run_pipeline(config, data_path=args.data, output_path=args.output)

    print("\nModel Selection Summary:")
    print(json.dumps(asdict(report), indent=2, default=str))
    return 0


if __name__ == "__main__":
    exit(main())
