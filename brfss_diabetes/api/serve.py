"""Run the diabetes prediction API under uvicorn."""

import argparse
import logging
from pathlib import Path

import uvicorn

from brfss_diabetes.api.app import create_app
from brfss_diabetes.config.constants import DEFAULT_DATA_PATH, DEFAULT_MODEL_PATH
from brfss_diabetes.config.settings import configure_logging, load_config
from brfss_diabetes.inference.scoring import load_scoring_context

logger = logging.getLogger(__name__)


def app_from_config(config: dict):
    """Load the scoring context named by a serve config and build the app."""
    model_path = Path(config.get("model_path", DEFAULT_MODEL_PATH))
    data_path = Path(config.get("data_path", DEFAULT_DATA_PATH))

    logger.info(f"Loading model from: {model_path}")
    context = load_scoring_context(model_path, data_path)
    return create_app(context)


def main():
    """CLI entry point for the prediction service."""
    parser = argparse.ArgumentParser(description="Serve diabetes predictions over HTTP")
    parser.add_argument(
        "--config", type=Path, default=Path("configs/serve_config.yaml"), help="Serve config"
    )
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config)

    try:
        app = app_from_config(config)
    except Exception as e:
        logger.error(f"Failed to load model: {e}")
        return 1

    server = config.get("server", {})
    uvicorn.run(
        app,
        host=args.host or server.get("host", "0.0.0.0"),
        port=args.port or server.get("port", 8000),
        log_level=config.get("logging", {}).get("log_level", "info").lower(),
    )
    return 0


if __name__ == "__main__":
    exit(main())
