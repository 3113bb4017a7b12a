"""
OpenTelemetry instrumentation for FastAPI and PyMongo
"""

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

from course_review.core.logger import logger


def instrument_app(app):
    """
    Instrument the FastAPI application and the MongoDB driver for span creation.

    Trace export is configured by the deployment, not here.
    """
    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumented with OpenTelemetry")

        # motor runs on top of pymongo, so this covers every store call
        PymongoInstrumentor().instrument()
        logger.info("PyMongo instrumented with OpenTelemetry")

    except Exception as e:
        logger.error(f"Failed to instrument application: {e}", error=e)
