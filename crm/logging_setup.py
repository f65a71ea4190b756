# crm/logging_setup.py
import logging
import os
import time
import uuid
from logging.handlers import RotatingFileHandler

from flask import g, request


def configure_logging(app):
    """Sets up the shared 'crm' logger that every module logs through."""
    logger = logging.getLogger('crm')
    logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Prevent duplicate handlers if the factory runs more than once
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(app.config['LOG_FORMAT'])

    if app.config.get('LOG_TO_FILE', True):
        log_dir = app.config['LOG_DIR']
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'crm.log'),
            maxBytes=app.config['LOG_MAX_BYTES'],
            backupCount=app.config['LOG_BACKUP_COUNT']
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    return logger


def init_request_logging(app):
    logger = logging.getLogger('crm.requests')

    @app.before_request
    def log_request():
        g.correlation_id = str(uuid.uuid4())
        g.request_started = time.perf_counter()
        logger.info(f"Request: {request.method} {request.path} [{g.correlation_id}]")

    @app.after_request
    def log_response(response):
        duration_ms = (time.perf_counter() - g.get('request_started', time.perf_counter())) * 1000
        correlation_id = g.get('correlation_id')
        if correlation_id:
            response.headers['X-Correlation-ID'] = correlation_id
        logger.info(
            f"Response: {response.status_code} {request.method} {request.path} "
            f"in {duration_ms:.1f}ms [{correlation_id}]"
        )
        return response
