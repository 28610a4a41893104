from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from citation_autofill.api.http_setup import register_exception_handlers, register_http_middleware
from citation_autofill.api.runtime_routes import RuntimeRouteDeps, register_runtime_routes
from citation_autofill.browser.form_fill_service import FormFillService
from citation_autofill.core.config import AppConfig
from citation_autofill.core.logging import setup_logging
from citation_autofill.documents.upload_service import UploadService
from citation_autofill.ocr_extract.document_ai import DocumentAIClient

load_dotenv()
APP_CONFIG = AppConfig.from_env()
setup_logging(APP_CONFIG.logging.level)
LOGGER = logging.getLogger(__name__)


def create_app(config: AppConfig = APP_CONFIG) -> FastAPI:
    app = FastAPI(title="Parking Citation Autofill API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)

    upload_service = UploadService(
        upload_max_bytes=config.security.upload_max_bytes,
        create_ocr_client=lambda: DocumentAIClient(config.document_ai),
    )
    form_fill_service = FormFillService(config=config.autofill)

    register_runtime_routes(
        app,
        deps=RuntimeRouteDeps(
            upload_service=upload_service,
            form_fill_service=form_fill_service,
        ),
    )

    return app


app = create_app()
