"""Data validation module for the BRFSS diabetes dataset."""

import json
import logging
from pathlib import Path
from typing import List, Tuple

import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema

from brfss_diabetes.config.constants import (
    BMI_COLUMN,
    CATEGORICAL_COLUMNS,
    FEATURE_COLUMNS,
    REQUIRED_COLUMNS,
    TARGET_COLUMN,
)

logger = logging.getLogger(__name__)


class DatasetValidationError(ValueError):
    """Raised when an input dataset fails schema validation."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Dataset validation failed: " + "; ".join(errors[:5]))


class DiabetesDataValidator:
    """Validates the BRFSS health indicators CSV before modelling."""

    REQUIRED_COLUMNS = REQUIRED_COLUMNS

    def __init__(self):
        """Initialize validator with schema.

        Binary indicators must be coded 0/1 and BMI must be positive. Nulls
        are allowed here; incomplete rows are dropped by the loader.
        """
        binary_check = [pa.Check.isin([0, 1])]
        columns = {
            TARGET_COLUMN: Column(float, checks=binary_check, nullable=True, coerce=True),
            BMI_COLUMN: Column(float, checks=[pa.Check.gt(0)], nullable=True, coerce=True),
        }
        for col in CATEGORICAL_COLUMNS:
            columns[col] = Column(float, checks=binary_check, nullable=True, coerce=True)

        self.schema = DataFrameSchema(columns, strict=False)

    def validate_schema(self, df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate dataframe schema against required columns and value constraints.

        Checks for:
        - Missing required columns
        - Values that cannot be coerced to numbers
        - Binary indicators outside {0, 1} and non-positive BMI

        Args:
            df: Input dataframe

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        missing_cols = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing_cols:
            errors.append(f"Missing required columns: {sorted(missing_cols)}")
            return False, errors

        try:
            self.schema.validate(df[self.REQUIRED_COLUMNS], lazy=True)
            return True, []
        except pa.errors.SchemaErrors as e:
            for _, row in e.failure_cases.iterrows():
                errors.append(
                    f"Column '{row['column']}' failed check '{row['check']}' "
                    f"at index {row['index']}"
                )
            return False, errors

    def count_incomplete_rows(self, df: pd.DataFrame) -> int:
        """Count rows with a missing target or model feature."""
        return int(df[[TARGET_COLUMN] + FEATURE_COLUMNS].isnull().any(axis=1).sum())

    def validate_file(self, file_path: Path) -> pd.DataFrame:
        """Read and validate a dataset file.

        Args:
            file_path: Path to input CSV file

        Returns:
            Validated dataframe with model columns coerced to float

        Raises:
            FileNotFoundError: If the file does not exist
            DatasetValidationError: If the schema check fails
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Dataset not found: {file_path}")

        df = pd.read_csv(file_path)

        is_valid, errors = self.validate_schema(df)
        if not is_valid:
            logger.error(f"Dataset {file_path.name} rejected with {len(errors)} errors")
            raise DatasetValidationError(errors)

        df = df.copy()
        df[self.REQUIRED_COLUMNS] = df[self.REQUIRED_COLUMNS].astype(float)

        logger.info(f"Validated {len(df)} records from {file_path.name}")
        return df


def main():
    """CLI entry point for data validation."""
    import argparse

    parser = argparse.ArgumentParser(description="Validate the BRFSS diabetes dataset")
    parser.add_argument("input_file", type=Path, help="Path to input CSV file")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    validator = DiabetesDataValidator()
    try:
        df = validator.validate_file(args.input_file)
    except DatasetValidationError as e:
        print(json.dumps({"status": "rejected", "errors": e.errors}, indent=2))
        return 1

    report = {
        "status": "valid",
        "file": args.input_file.name,
        "total_records": len(df),
        "incomplete_records": validator.count_incomplete_rows(df),
    }
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    exit(main())
