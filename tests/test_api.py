"""Tests for the prediction API."""

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from brfss_diabetes.api.app import create_app
from brfss_diabetes.inference.scoring import build_feature_record, predict_probability


@pytest.fixture(scope="module")
def client(scoring_context):
    return TestClient(create_app(scoring_context))


class TestPredEndpoint:
    """Test GET /pred."""

    def test_no_parameters_uses_defaults(self, client, scoring_context):
        response = client.get("/pred")

        assert response.status_code == 200
        expected = predict_probability(scoring_context, build_feature_record(scoring_context))
        assert response.json()["prob_diabetes"] == pytest.approx(expected)

    def test_no_parameters_is_deterministic(self, client):
        first = client.get("/pred").json()
        second = client.get("/pred").json()

        assert first == second

    @pytest.mark.parametrize("bmi", ["12", "28.5", "45", "98"])
    @pytest.mark.parametrize("high_bp", ["Yes", "No"])
    @pytest.mark.parametrize("sex", ["Male", "Female"])
    def test_probability_in_unit_interval(self, client, bmi, high_bp, sex):
        response = client.get(
            "/pred", params={"bmi": bmi, "physActivity": "No", "highBP": high_bp, "sex": sex}
        )

        assert response.status_code == 200
        assert 0.0 <= response.json()["prob_diabetes"] <= 1.0

    def test_matches_held_out_prediction(self, client, trained_model):
        """A held-out row scores the same through the API as in the pipeline."""
        _, _, model_path = trained_model
        predictions = pd.read_csv(model_path.parent / "test_predictions.csv")

        for _, row in predictions.head(5).iterrows():
            response = client.get(
                "/pred",
                params={
                    "bmi": row["BMI"],
                    "physActivity": row["PhysActivity"],
                    "highBP": row["HighBP"],
                    "sex": row["Sex"],
                },
            )
            assert response.json()["prob_diabetes"] == pytest.approx(row["prob_diabetes"])

    def test_category_case_and_whitespace_normalized(self, client):
        canonical = client.get("/pred", params={"highBP": "Yes", "sex": "Male"}).json()
        loose = client.get("/pred", params={"highBP": " yes ", "sex": "MALE"}).json()

        assert loose == canonical

    def test_supplied_values_change_prediction(self, client):
        low = client.get("/pred", params={"bmi": "20", "highBP": "No"}).json()
        high = client.get("/pred", params={"bmi": "45", "highBP": "Yes"}).json()

        assert high["prob_diabetes"] > low["prob_diabetes"]

    @pytest.mark.parametrize(
        "params",
        [
            {"bmi": "abc"},
            {"bmi": "nan"},
            {"bmi": "-5"},
            {"bmi": "1e200"},
            {"bmi": "1e300"},
            {"physActivity": "sometimes"},
            {"highBP": ""},
            {"sex": "F"},
        ],
    )
    def test_invalid_input_rejected(self, client, params):
        response = client.get("/pred", params=params)

        assert response.status_code == 400
        assert "Invalid value" in response.json()["detail"]


class TestInfoEndpoint:
    """Test GET /info."""

    def test_constant_metadata(self, client):
        response = client.get("/info")

        assert response.status_code == 200
        assert response.json() == {
            "author": "Hongjing Mao",
            "site": "https://mhongji.github.io/Final_Project",
        }

    def test_ignores_query_parameters(self, client):
        assert client.get("/info", params={"bmi": "30"}).json() == client.get("/info").json()


class TestHealthEndpoint:
    """Test GET /health."""

    def test_reports_model_family(self, client, scoring_context):
        response = client.get("/health")

        assert response.json() == {"status": "ok", "model_family": scoring_context.family}


class TestOpenApiDocs:
    """Test the documented query parameters."""

    def test_sex_description_states_coding(self, client):
        parameters = client.get("/openapi.json").json()["paths"]["/pred"]["get"]["parameters"]
        sex = next(p for p in parameters if p["name"] == "sex")

        assert "0 = Female, 1 = Male" in sex["description"]
