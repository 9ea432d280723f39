from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_date
from ..common.responses import domain_error_response, server_error_response
from ..core.enums import Action, EventKind
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _submit(kind):
        try:
            body = request.get_json(silent=True) or {}
            result = container.attendance_service.submit_tap(body, kind=kind)
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("recording a tap")

        created = result.action == Action.CHECKIN and not result.already_processed
        return jsonify({"success": True, **result.to_dict()}), 201 if created else 200

    @app.route("/api/attendance/tap", methods=["POST"], endpoint="api_attendance_tap")
    def api_attendance_tap():
        """Single-reader endpoint: open/close comes from ``type`` or, in toggle mode, from state."""
        return _submit(None)

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="api_attendance_checkin")
    def api_attendance_checkin():
        return _submit(EventKind.OPEN)

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="api_attendance_checkout")
    def api_attendance_checkout():
        return _submit(EventKind.CLOSE)

    @app.route("/api/attendance/today/<int:employee_id>", methods=["GET"], endpoint="api_attendance_today")
    def api_attendance_today(employee_id: int):
        record = container.attendance_service.get_today_record(employee_id)
        return jsonify({"success": True, "record": record.to_dict() if record else None}), 200

    @app.route("/api/attendance/employee/<int:employee_id>", methods=["GET"], endpoint="api_attendance_history")
    def api_attendance_history(employee_id: int):
        try:
            records = container.attendance_service.get_history(employee_id, limit=request.args.get("limit", 30))
        except DomainError as e:
            return domain_error_response(e)
        return jsonify({"success": True, "records": [r.to_dict() for r in records]}), 200

    @app.route("/api/attendance/mark-leave", methods=["POST"], endpoint="api_attendance_mark_leave")
    def api_attendance_mark_leave():
        body = request.get_json(silent=True) or {}
        try:
            cutoff, ids = container.attendance_service.mark_missing_timeouts_as_leave(body.get("cutoff_date"))
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("marking missing time-outs as leave")

        return jsonify(
            {
                "success": True,
                "message": f"Marked {len(ids)} records as leave",
                "count": len(ids),
                "updatedRecords": ids,
                "cutoffDate": format_date(cutoff),
            }
        ), 200
