"""
FastAPI demo with request validation.

Usage:
    # Install dependencies
    pip install -e ".[asgi,fastapi]"

    # Run the server
    uvicorn examples.fastapi_demo:app --port 8009 --reload

    # Or directly
    python examples/fastapi_demo.py

Test with curl:
    # First request: 307 with the request_key cookie
    curl -i -A "Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0" http://localhost:8009/page

    # Follow the redirect, keeping cookies
    curl -L -c jar -b jar -A "Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0" http://localhost:8009/page

    # Blocked client
    curl -i -A "sqlmap/1.0" -c jar -b jar http://localhost:8009/page

Environment variables:
    REQUEST_VALIDATOR_COOKIE_PEPPER - Secret for the origin token cookie
    REQUEST_VALIDATOR_CAPTCHA_SITE_KEY - Verification provider site key
    REQUEST_VALIDATOR_CAPTCHA_SECRET_KEY - Verification provider secret key
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from request_validator import MemoryRateStore, Pipeline, ValidatorConfig, default_stages
from request_validator.middleware import RequestValidatorASGIMiddleware

logging.basicConfig(level=logging.INFO)

config = ValidatorConfig.from_env()
pipeline = Pipeline(default_stages(config, MemoryRateStore()))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    pipeline.close()


app = FastAPI(
    lifespan=lifespan,
    title="Request Validator Demo",
    description="Demo app behind the request validation chain",
    version="0.1.0",
)

app.add_middleware(
    RequestValidatorASGIMiddleware,
    pipeline=pipeline,
)


@app.get("/page")
async def page(request: Request):
    """Content endpoint reached only by admitted requests."""
    admission = request.state.admission
    return {
        "message": "Admitted",
        "allowed_bot": admission.allowed_bot,
        "challenge_pass": admission.challenge_pass,
    }


@app.post(config.captcha_path)
async def captcha_verified(request: Request):
    """Reached after the provider accepted a verification submission."""
    return {"message": "Verification accepted", "challenge_pass": request.state.admission.challenge_pass}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8009)
