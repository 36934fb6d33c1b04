"""Run the gateway with uvicorn: ``python -m onboarding_gateway``."""
import uvicorn

from onboarding_gateway.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "onboarding_gateway.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level="info",
    )
