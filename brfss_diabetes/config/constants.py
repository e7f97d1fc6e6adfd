"""Shared constants for the BRFSS diabetes model-selection pipeline and scoring service."""

# Target column name
TARGET_COLUMN = "Diabetes_binary"

# Numeric predictor
BMI_COLUMN = "BMI"

# Binary 0/1 predictors modelled as labelled categories
CATEGORICAL_COLUMNS = [
    "PhysActivity",
    "HighBP",
    "Sex",
]

# Columns the candidate models draw their features from
FEATURE_COLUMNS = [BMI_COLUMN] + CATEGORICAL_COLUMNS

# Columns that must be present in the input CSV
REQUIRED_COLUMNS = [TARGET_COLUMN] + FEATURE_COLUMNS

# Code -> label mapping per encoded column. Level order is the factor order:
# the first level is the reference level and, for the target, the negative class.
ENCODING = {
    TARGET_COLUMN: ((0, "No"), (1, "Yes")),
    "PhysActivity": ((0, "No"), (1, "Yes")),
    "HighBP": ((0, "No"), (1, "Yes")),
    "Sex": ((0, "Female"), (1, "Male")),
}

NEGATIVE_LABEL = "No"
POSITIVE_LABEL = "Yes"

# Upper bound of BMI in the BRFSS 2015 file; requests above it are rejected
MAX_BMI = 98.0

# Query parameter name -> dataset column for the /pred endpoint
QUERY_PARAMETERS = {
    "bmi": BMI_COLUMN,
    "physActivity": "PhysActivity",
    "highBP": "HighBP",
    "sex": "Sex",
}

# Constant metadata served by /info
SERVICE_AUTHOR = "Hongjing Mao"
SERVICE_SITE = "https://mhongji.github.io/Final_Project"

# Default artifact locations
DEFAULT_DATA_PATH = "data/diabetes_binary_health_indicators_BRFSS2015.csv"
DEFAULT_MODEL_PATH = "model/best_model.joblib"
METADATA_FILENAME = "metadata.json"
TEST_PREDICTIONS_FILENAME = "test_predictions.csv"


def levels(column):
    """Return the ordered category labels for an encoded column."""
    return [label for _, label in ENCODING[column]]
