from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from formbuilder.config.database_config import Base, engine
from formbuilder.config.env_config import settings
from formbuilder.config.logger_config import setup_logging
from formbuilder.exceptions import (
    CustomException,
    custom_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from formbuilder.models import form_model  # noqa: F401  registers tables on Base
from formbuilder.routes.form_router import form_controller
from formbuilder.routes.public_router import public_controller
from formbuilder.routes.section_router import section_controller
from formbuilder.utils.logger_utils import log_info

# Initialize logging
setup_logging()

app = FastAPI(
    title="Form Builder API",
    swagger_ui_parameters={
        "persistAuthorization": True
    }
)

log_info(context="APP_STARTUP", message="FastAPI application started")


@app.get("/health")
def server_life_check():
    return {"statusCode": 200, "data": "Your server is running successfully"}


Base.metadata.create_all(bind=engine)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(CustomException, custom_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Public routes first so slugs never collide with owner paths
app.include_router(public_controller, prefix="/forms/public", tags=["Public Forms"])
app.include_router(section_controller, prefix="/forms", tags=["Sections & Fields"])
app.include_router(form_controller, prefix="/forms", tags=["Forms"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
