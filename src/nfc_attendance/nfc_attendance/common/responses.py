from __future__ import annotations

import logging

from flask import jsonify

from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def domain_error_response(e: DomainError):
    logger.warning("Rejected: %s (%s)", e, e.code)
    return jsonify({"success": False, "code": e.code, "message": str(e)}), e.http_status


def server_error_response(context: str):
    logger.exception("Unexpected error while %s", context)
    return jsonify({"success": False, "code": "INTERNAL_ERROR", "message": "Internal server error"}), 500
