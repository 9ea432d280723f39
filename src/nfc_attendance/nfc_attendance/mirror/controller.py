from __future__ import annotations

import hmac

import requests
from flask import Flask, jsonify, request

from ..common.responses import domain_error_response, server_error_response
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _authorized() -> bool:
        expected = app.config.get("MIRROR_SECRET") or ""
        given = request.headers.get("X-Mirror-Secret") or ""
        return bool(expected) and hmac.compare_digest(given, expected)

    @app.route("/api/mirror/sync", methods=["POST"], endpoint="api_mirror_sync")
    def api_mirror_sync():
        """Webhook called by the mirror's change notifications."""
        if not _authorized():
            return jsonify({"success": False, "code": "UNAUTHORIZED", "message": "Unauthorized"}), 401

        try:
            report = container.mirror_adapter.handle_payload(request.get_json(silent=True) or {})
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("syncing a mirror payload")
        return jsonify(report.to_dict()), 200

    @app.route("/api/mirror/poll", methods=["POST"], endpoint="api_mirror_poll")
    def api_mirror_poll():
        """Pull the whole mirror snapshot and reconcile every tag."""
        if not _authorized():
            return jsonify({"success": False, "code": "UNAUTHORIZED", "message": "Unauthorized"}), 401
        if container.mirror_source is None:
            return jsonify({"success": False, "code": "MIRROR_NOT_CONFIGURED", "message": "MIRROR_URL is not set"}), 503

        try:
            report = container.mirror_adapter.poll(container.mirror_source)
        except requests.RequestException as e:
            return jsonify({"success": False, "code": "MIRROR_UNREACHABLE", "message": str(e)}), 502
        except Exception:
            return server_error_response("polling the mirror")
        return jsonify(report.to_dict()), 200
