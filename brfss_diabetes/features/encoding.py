"""Categorical encoding and design-matrix construction for diabetes prediction.

The same encoding scheme is applied when the pipeline trains and when the
service scores a request: binary 0/1 columns become labelled pandas
categoricals with a fixed level order, and ``DesignMatrixEncoder`` turns
those labels into treatment-coded numeric features.
"""

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin

from brfss_diabetes.config.constants import (
    BMI_COLUMN,
    CATEGORICAL_COLUMNS,
    ENCODING,
    TARGET_COLUMN,
    levels,
)


class EncodingMismatchError(ValueError):
    """Raised when a stored encoding differs from the encoding in use."""


def encoding_scheme():
    """Return the encoding scheme as a plain, serializable dict."""
    return {col: [[code, label] for code, label in pairs] for col, pairs in ENCODING.items()}


def check_encoding(stored):
    """Verify that a stored encoding scheme matches the current one.

    Args:
        stored: Encoding dict as returned by ``encoding_scheme``

    Raises:
        EncodingMismatchError: If any column's codes, labels or order differ
    """
    current = encoding_scheme()
    if stored is None:
        raise EncodingMismatchError("Model artifact does not record its encoding")

    normalized = {col: [list(pair) for pair in pairs] for col, pairs in stored.items()}
    if normalized != current:
        raise EncodingMismatchError(
            f"Model was trained with encoding {normalized}, current encoding is {current}"
        )


def as_categorical(values, column):
    """Wrap label values in a Categorical with the column's fixed levels."""
    return pd.Categorical(values, categories=levels(column), ordered=False)


def encode_dataset(df: pd.DataFrame) -> pd.DataFrame:
    """Map 0/1 codes of the target and categorical predictors to labels.

    Args:
        df: Validated dataframe with numeric codes

    Returns:
        Copy of ``df`` with encoded columns converted to categoricals
    """
    encoded = df.copy()
    for col in [TARGET_COLUMN] + CATEGORICAL_COLUMNS:
        mapping = {float(code): label for code, label in ENCODING[col]}
        encoded[col] = as_categorical(encoded[col].astype(float).map(mapping), col)
    return encoded


def parse_term(term):
    """Split a formula term into its factors.

    ``"BMI"`` -> ``[("BMI", 1)]``, ``"BMI:HighBP"`` -> ``[("BMI", 1), ("HighBP", 1)]``,
    ``"BMI^2"`` -> ``[("BMI", 2)]``.
    """
    factors = []
    for part in term.split(":"):
        name, _, power = part.strip().partition("^")
        factors.append((name.strip(), int(power) if power else 1))
    return factors


class DesignMatrixEncoder(TransformerMixin, BaseEstimator):
    """Build a numeric design matrix from labelled features and formula terms.

    Categorical factors are treatment coded against their first level, so a
    binary column contributes one indicator of its second level. Interaction
    terms (``A:B``) multiply their factors; ``X^2`` squares a numeric column.
    """

    def __init__(self, terms=None):
        """Initialize encoder.

        Args:
            terms: List of formula terms, e.g. ``["BMI", "HighBP", "BMI:HighBP"]``
        """
        self.terms = terms

    def _terms(self):
        return list(self.terms) if self.terms else [BMI_COLUMN] + CATEGORICAL_COLUMNS

    def fit(self, X, y=None):
        """Fit encoder (stateless apart from recording output names).

        Args:
            X: Labelled feature frame
            y: Target (unused)

        Returns:
            self
        """
        self.feature_names_ = [self._term_name(term) for term in self._terms()]
        return self

    def _term_name(self, term):
        names = []
        for column, power in parse_term(term):
            if column in ENCODING:
                names.append(f"{column}[{levels(column)[-1]}]")
            elif power > 1:
                names.append(f"{column}^{power}")
            else:
                names.append(column)
        return ":".join(names)

    def _factor(self, X, column, power):
        if column not in X.columns:
            raise ValueError(f"Missing feature column: {column}")

        if column in ENCODING:
            labels = X[column].astype(object)
            known = labels.isin(levels(column))
            if not known.all():
                bad = labels[~known].unique().tolist()
                raise ValueError(f"Unrecognized levels for {column}: {bad}")
            values = (labels == levels(column)[-1]).astype(float).to_numpy()
        else:
            values = pd.to_numeric(X[column], errors="raise").astype(float).to_numpy()
            if np.isnan(values).any():
                raise ValueError(f"Missing values in numeric column: {column}")

        return values ** power

    def transform(self, X):
        """Transform labelled features into the design matrix.

        Args:
            X: DataFrame with the columns named by the terms

        Returns:
            Array of shape (n_samples, n_terms)
        """
        if not isinstance(X, pd.DataFrame):
            raise TypeError("DesignMatrixEncoder expects a pandas DataFrame")

        columns = []
        for term in self._terms():
            values = np.ones(len(X))
            for column, power in parse_term(term):
                values = values * self._factor(X, column, power)
            columns.append(values)

        return np.column_stack(columns)

    def get_feature_names_out(self, input_features=None):
        return np.asarray([self._term_name(term) for term in self._terms()], dtype=object)
