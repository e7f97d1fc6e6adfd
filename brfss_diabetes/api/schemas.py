from pydantic import BaseModel, Field


class PredictionResponse(BaseModel):
    prob_diabetes: float = Field(..., ge=0.0, le=1.0, description="Probability of diabetes")


class InfoResponse(BaseModel):
    author: str
    site: str


class HealthResponse(BaseModel):
    status: str
    model_family: str
