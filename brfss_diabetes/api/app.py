"""Diabetes prediction API.

Endpoints:
- GET /pred    -> probability of diabetes for the supplied (or default) features
- GET /info    -> author and project site
- GET /health  -> service status and loaded model family
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status

from brfss_diabetes.api.schemas import HealthResponse, InfoResponse, PredictionResponse
from brfss_diabetes.config.constants import SERVICE_AUTHOR, SERVICE_SITE
from brfss_diabetes.inference.scoring import (
    InvalidFeatureValue,
    ScoringContext,
    build_feature_record,
    predict_probability,
)

logger = logging.getLogger(__name__)


def get_scoring_context(request: Request) -> ScoringContext:
    return request.app.state.scoring_context


def create_app(context: ScoringContext) -> FastAPI:
    """Create the API bound to a loaded scoring context.

    Args:
        context: Model and feature defaults loaded at startup

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Diabetes Prediction API",
        description="Predict the probability of diabetes using the best model.",
    )
    app.state.scoring_context = context

    @app.get("/pred", response_model=PredictionResponse)
    def pred(
        bmi: Optional[str] = Query(
            None, description="Body-mass index in (0, 98] (default: dataset mean)"
        ),
        phys_activity: Optional[str] = Query(
            None, alias="physActivity", description='Regular physical activity: "Yes" or "No"'
        ),
        high_bp: Optional[str] = Query(
            None, alias="highBP", description='High blood pressure: "Yes" or "No"'
        ),
        sex: Optional[str] = Query(
            None,
            description='Sex: "Female" or "Male" (BRFSS codes 0 = Female, 1 = Male)',
        ),
        ctx: ScoringContext = Depends(get_scoring_context),
    ):
        try:
            record = build_feature_record(
                ctx, bmi=bmi, phys_activity=phys_activity, high_bp=high_bp, sex=sex
            )
        except InvalidFeatureValue as e:
            logger.info(f"Rejected prediction request: {e}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        return PredictionResponse(prob_diabetes=predict_probability(ctx, record))

    @app.get("/info", response_model=InfoResponse)
    def info():
        return InfoResponse(author=SERVICE_AUTHOR, site=SERVICE_SITE)

    @app.get("/health", response_model=HealthResponse)
    def health(ctx: ScoringContext = Depends(get_scoring_context)):
        return HealthResponse(status="ok", model_family=ctx.family)

    return app
