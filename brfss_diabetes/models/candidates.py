"""Candidate model families and specifications for model selection."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

import numpy as np
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.tree import DecisionTreeClassifier

from brfss_diabetes.config.constants import FEATURE_COLUMNS, POSITIVE_LABEL
from brfss_diabetes.features.encoding import DesignMatrixEncoder


class ModelFamily(str, Enum):
    """Closed set of model families compared by the pipeline.

    Declaration order is also the tie-break order when two families score the same.
    """

    LOGISTIC = "logistic"
    TREE = "tree"
    FOREST = "forest"


@dataclass(frozen=True)
class CandidateSpec:
    """One model specification: family, feature terms and hyperparameter grid."""

    family: ModelFamily
    name: str
    terms: Tuple[str, ...]
    param_grid: Dict[str, List[Any]] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    def build_estimator(self, random_state: int) -> Pipeline:
        """Create an unfitted pipeline of encoder and classifier."""
        encoder = DesignMatrixEncoder(terms=list(self.terms))

        if self.family is ModelFamily.LOGISTIC:
            steps = [
                ("encoder", encoder),
                ("scaler", StandardScaler()),
                ("classifier", LogisticRegression(max_iter=self.options.get("max_iter", 1000))),
            ]
        elif self.family is ModelFamily.TREE:
            steps = [
                ("encoder", encoder),
                ("classifier", DecisionTreeClassifier(random_state=random_state)),
            ]
        elif self.family is ModelFamily.FOREST:
            steps = [
                ("encoder", encoder),
                (
                    "classifier",
                    RandomForestClassifier(
                        n_estimators=self.options.get("n_estimators", 200),
                        n_jobs=self.options.get("n_jobs", 1),
                        random_state=random_state,
                    ),
                ),
            ]
        else:
            raise ValueError(f"Unknown model family: {self.family}")

        return Pipeline(steps)

    def search_grid(self) -> Dict[str, List[Any]]:
        """Return the parameter grid keyed for the pipeline's classifier step."""
        return {f"classifier__{name}": list(values) for name, values in self.param_grid.items()}


@dataclass
class CandidateResult:
    """A candidate after cross-validation, refit on the full training subset."""

    spec: CandidateSpec
    estimator: Pipeline
    best_params: Dict[str, Any]
    cv_log_loss: float

    @property
    def family(self) -> ModelFamily:
        return self.spec.family

    def predict_positive_proba(self, X) -> np.ndarray:
        return positive_class_proba(self.estimator, X)


def positive_class_proba(estimator, X) -> np.ndarray:
    """Probability of the positive label, located by name in ``classes_``.

    Args:
        estimator: Fitted classifier or pipeline exposing ``predict_proba``
        X: Labelled feature frame

    Returns:
        1-D array of positive-class probabilities
    """
    classes = list(estimator.classes_)
    if POSITIVE_LABEL not in classes:
        raise ValueError(f"Positive label {POSITIVE_LABEL!r} not among model classes {classes}")
    return estimator.predict_proba(X)[:, classes.index(POSITIVE_LABEL)]


def build_candidates(config: dict) -> List[CandidateSpec]:
    """Build candidate specifications from the ``candidates`` config section.

    Args:
        config: Training configuration

    Returns:
        List of candidate specs, logistic feature sets first
    """
    section = config["candidates"]
    n_jobs = config.get("cross_validation", {}).get("n_jobs", 1)
    candidates = []

    logistic = section["logistic"]
    for name, terms in logistic["feature_sets"].items():
        candidates.append(
            CandidateSpec(
                family=ModelFamily.LOGISTIC,
                name=f"logistic_{name}",
                terms=tuple(terms),
                param_grid=logistic["param_grid"],
                options={"max_iter": logistic.get("max_iter", 1000)},
            )
        )

    tree = section["tree"]
    candidates.append(
        CandidateSpec(
            family=ModelFamily.TREE,
            name="tree",
            terms=tuple(tree.get("feature_set", FEATURE_COLUMNS)),
            param_grid=tree["param_grid"],
        )
    )

    forest = section["forest"]
    candidates.append(
        CandidateSpec(
            family=ModelFamily.FOREST,
            name="forest",
            terms=tuple(forest.get("feature_set", FEATURE_COLUMNS)),
            param_grid=forest["param_grid"],
            options={"n_estimators": forest.get("n_estimators", 200), "n_jobs": n_jobs},
        )
    )

    return candidates
