from fastapi import FastAPI

from backend.app.api.classify import router as classify_router
from inbox_classifier.config.logging import configure_logging
from inbox_classifier.config.settings import load_settings

settings = load_settings()
configure_logging(settings.log_level, json_output=settings.log_json)

app = FastAPI(title="inbox-classifier API")
app.include_router(classify_router, prefix="/api")


@app.get("/api/health", include_in_schema=False)
def health() -> dict:
    return {"ok": True}
