from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.responses import domain_error_response, server_error_response
from ..core.exceptions import DomainError
from ..container import Container


def _binding_dict(binding) -> dict:
    return {
        "tagId": binding.tag_id,
        "employeeId": binding.employee_id,
        "status": binding.status.value,
        "enrolledAt": binding.enrolled_at.isoformat() if binding.enrolled_at else None,
        "lastUsedAt": binding.last_used_at.isoformat() if binding.last_used_at else None,
        "readerId": binding.reader_id,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/tags/<tag_id>", methods=["GET"], endpoint="api_tag_get")
    def api_tag_get(tag_id: str):
        try:
            binding = container.tag_directory.get_binding(tag_id)
        except DomainError as e:
            return domain_error_response(e)
        return jsonify({"success": True, "tag": _binding_dict(binding)}), 200

    @app.route("/api/tags", methods=["POST"], endpoint="api_tag_enroll")
    def api_tag_enroll():
        body = request.get_json(silent=True) or {}
        try:
            binding = container.tag_directory.enroll(body.get("tagId"), body.get("employeeId"))
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("enrolling a tag")
        return jsonify({"success": True, "tag": _binding_dict(binding)}), 201

    @app.route("/api/tags/<tag_id>/status", methods=["PATCH"], endpoint="api_tag_status")
    def api_tag_status(tag_id: str):
        body = request.get_json(silent=True) or {}
        try:
            binding = container.tag_directory.set_status(tag_id, body.get("status"))
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("updating tag status")
        return jsonify({"success": True, "tag": _binding_dict(binding)}), 200
