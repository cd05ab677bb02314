from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.logging_config import setup_logging
from marketplace.database import Base, engine
from marketplace.errors import http_exception_handler, validation_exception_handler
from marketplace import models  # noqa: F401  registers the tables on Base
from marketplace.routes import routers

setup_logging()

app = FastAPI(title="Realty Marketplace API")

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

for router in routers:
    app.include_router(router)

Base.metadata.create_all(bind=engine)


@app.get("/health")
def health():
    return {"ok": True}
