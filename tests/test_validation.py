"""Tests for data validation."""

import numpy as np
import pandas as pd
import pytest

from brfss_diabetes.data.validate_input import DatasetValidationError, DiabetesDataValidator


def _records(**overrides):
    data = {
        "Diabetes_binary": [0.0, 1.0],
        "HighBP": [1.0, 0.0],
        "BMI": [25.0, 31.0],
        "PhysActivity": [1.0, 0.0],
        "Sex": [0.0, 1.0],
        "Smoker": [0.0, 1.0],
    }
    data.update(overrides)
    return pd.DataFrame(data)


class TestDiabetesDataValidator:
    """Test data validation."""

    def test_valid_data_passes(self):
        """Test that valid data passes validation."""
        validator = DiabetesDataValidator()
        is_valid, errors = validator.validate_schema(_records())

        assert is_valid, f"Validation failed with errors: {errors}"
        assert len(errors) == 0

    def test_integer_codes_pass(self):
        """Test that 0/1 integer codes are accepted as well as floats."""
        df = _records(HighBP=[1, 0], Sex=[0, 1])

        is_valid, _ = DiabetesDataValidator().validate_schema(df)

        assert is_valid

    def test_missing_columns_rejected(self):
        """Test that missing required columns are rejected."""
        df = pd.DataFrame({"Diabetes_binary": [0, 1], "BMI": [25.0, 30.0]})

        is_valid, errors = DiabetesDataValidator().validate_schema(df)

        assert not is_valid
        assert "Missing required columns" in errors[0]

    def test_non_binary_indicator_rejected(self):
        """Test that indicator values outside {0, 1} are rejected."""
        df = _records(HighBP=[1.0, 2.0])

        is_valid, errors = DiabetesDataValidator().validate_schema(df)

        assert not is_valid
        assert any("HighBP" in e for e in errors)

    def test_non_positive_bmi_rejected(self):
        """Test BMI validation (must be > 0)."""
        df = _records(BMI=[0.0, 30.0])

        is_valid, errors = DiabetesDataValidator().validate_schema(df)

        assert not is_valid
        assert any("BMI" in e for e in errors)

    def test_nulls_allowed_and_counted(self):
        """Test that nulls pass the schema and are reported as incomplete rows."""
        df = _records(BMI=[np.nan, 30.0])
        validator = DiabetesDataValidator()

        is_valid, _ = validator.validate_schema(df)

        assert is_valid
        assert validator.count_incomplete_rows(df) == 1

    def test_validate_file_missing(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            DiabetesDataValidator().validate_file(tmp_path / "missing.csv")

    def test_validate_file_rejects_bad_values(self, tmp_path):
        """Test that an invalid file raises with the collected errors."""
        path = tmp_path / "bad.csv"
        _records(Sex=[0.0, 3.0]).to_csv(path, index=False)

        with pytest.raises(DatasetValidationError) as exc_info:
            DiabetesDataValidator().validate_file(path)

        assert exc_info.value.errors

    def test_validate_file_returns_frame(self, dataset_path, brfss_frame):
        """Test that a valid file is returned with all records."""
        df = DiabetesDataValidator().validate_file(dataset_path)

        assert len(df) == len(brfss_frame)
        assert df["BMI"].dtype == float
