"""Scoring context for single-record diabetes probability predictions."""

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import joblib
import pandas as pd

from brfss_diabetes.config.constants import (
    BMI_COLUMN,
    CATEGORICAL_COLUMNS,
    FEATURE_COLUMNS,
    MAX_BMI,
    METADATA_FILENAME,
    POSITIVE_LABEL,
    QUERY_PARAMETERS,
    levels,
)
from brfss_diabetes.data.validate_input import DiabetesDataValidator
from brfss_diabetes.features.encoding import (
    EncodingMismatchError,
    as_categorical,
    check_encoding,
    encode_dataset,
)
from brfss_diabetes.models.candidates import positive_class_proba

logger = logging.getLogger(__name__)


class InvalidFeatureValue(ValueError):
    """Raised when a request value cannot be mapped onto the training encoding."""

    def __init__(self, field_name: str, value, message: str):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid value {value!r} for {field_name}: {message}")


@dataclass(frozen=True)
class FeatureDefaults:
    """Fallback values for omitted request parameters."""

    bmi: float
    phys_activity: str
    high_bp: str
    sex: str

    def as_record(self) -> dict:
        return {
            BMI_COLUMN: self.bmi,
            "PhysActivity": self.phys_activity,
            "HighBP": self.high_bp,
            "Sex": self.sex,
        }


@dataclass(frozen=True)
class ScoringContext:
    """Read-only state shared by every request once the service is ready."""

    model: object
    family: str
    defaults: FeatureDefaults
    metadata: dict = field(default_factory=dict)


def load_model_artifacts(model_path: Path) -> dict:
    """Load the persisted model artifact and check its encoding.

    Args:
        model_path: Path to the joblib artifact

    Returns:
        Artifact dictionary with model, family, encoding, scores and metadata

    Raises:
        FileNotFoundError: If the artifact is missing
        EncodingMismatchError: If the artifact was trained with another encoding
    """
    model_path = Path(model_path)
    if not model_path.exists():
        raise FileNotFoundError(f"Model artifacts not found: {model_path}")

    artifacts = joblib.load(model_path)
    check_encoding(artifacts.get("encoding"))

    if artifacts.get("positive_label", POSITIVE_LABEL) != POSITIVE_LABEL:
        raise EncodingMismatchError(
            f"Model positive label {artifacts['positive_label']!r} != {POSITIVE_LABEL!r}"
        )

    metadata = {}
    metadata_path = model_path.parent / METADATA_FILENAME
    if metadata_path.exists():
        with open(metadata_path, "r") as f:
            metadata = json.load(f)

    return {**artifacts, "metadata": metadata}


def _most_frequent(series: pd.Series, column: str) -> str:
    # reindex keeps level order, so ties resolve to the earlier level
    counts = series.value_counts().reindex(levels(column), fill_value=0)
    return str(counts.idxmax())


def compute_feature_defaults(df: pd.DataFrame) -> FeatureDefaults:
    """Mean BMI and most frequent label per categorical field.

    Args:
        df: Encoded dataset

    Returns:
        FeatureDefaults
    """
    return FeatureDefaults(
        bmi=float(df[BMI_COLUMN].mean(skipna=True)),
        phys_activity=_most_frequent(df["PhysActivity"], "PhysActivity"),
        high_bp=_most_frequent(df["HighBP"], "HighBP"),
        sex=_most_frequent(df["Sex"], "Sex"),
    )


def load_scoring_context(model_path: Path, data_path: Path) -> ScoringContext:
    """Build the scoring context from the model artifact and the dataset.

    Args:
        model_path: Path to the joblib artifact
        data_path: Path to the BRFSS CSV used for defaults

    Returns:
        ScoringContext
    """
    artifacts = load_model_artifacts(model_path)
    logger.info(f"Loaded {artifacts['family']} model from {model_path}")

    df = encode_dataset(DiabetesDataValidator().validate_file(data_path))
    defaults = compute_feature_defaults(df)
    logger.info(f"Feature defaults: {defaults}")

    return ScoringContext(
        model=artifacts["model"],
        family=artifacts["family"],
        defaults=defaults,
        metadata=artifacts.get("metadata", {}),
    )


def parse_bmi(raw) -> float:
    """Parse a BMI value; must be a number in (0, MAX_BMI]."""
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise InvalidFeatureValue("bmi", raw, "not a number") from None
    if not math.isfinite(value) or value <= 0 or value > MAX_BMI:
        raise InvalidFeatureValue(
            "bmi", raw, f"must be greater than zero and at most {MAX_BMI:g}"
        )
    return value


def normalize_category(column: str, raw, field_name: Optional[str] = None) -> str:
    """Map a category string onto its canonical label.

    Surrounding whitespace is ignored and matching is case-insensitive, so
    ``" yes "`` becomes ``"Yes"``. Anything else is rejected.
    """
    allowed = levels(column)
    key = str(raw).strip().casefold()
    for label in allowed:
        if label.casefold() == key:
            return label
    raise InvalidFeatureValue(field_name or column, raw, f"expected one of {allowed}")


def build_feature_record(
    context: ScoringContext,
    bmi=None,
    phys_activity=None,
    high_bp=None,
    sex=None,
) -> pd.DataFrame:
    """Build a one-row feature frame with the training encodings.

    Omitted values (``None``) take the context defaults.

    Raises:
        InvalidFeatureValue: If a supplied value fails parsing
    """
    record = context.defaults.as_record()
    if bmi is not None:
        record[BMI_COLUMN] = parse_bmi(bmi)
    supplied = {
        "physActivity": phys_activity,
        "highBP": high_bp,
        "sex": sex,
    }
    for field_name, value in supplied.items():
        if value is not None:
            column = QUERY_PARAMETERS[field_name]
            record[column] = normalize_category(column, value, field_name)

    frame = pd.DataFrame({BMI_COLUMN: [float(record[BMI_COLUMN])]})
    for column in CATEGORICAL_COLUMNS:
        frame[column] = as_categorical([record[column]], column)
    return frame[FEATURE_COLUMNS]


def predict_probability(context: ScoringContext, record: pd.DataFrame) -> float:
    """Positive-class probability for a one-row feature record."""
    return float(positive_class_proba(context.model, record)[0])
