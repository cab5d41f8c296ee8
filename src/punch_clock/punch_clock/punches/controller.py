from __future__ import annotations

from flask import Flask, g, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import auth_decorators, json_body, json_endpoint, ok
from ..common.serialization import effective_to_dict, punch_to_dict, summary_to_dict
from ..common.validators import parse_limit
from ..core.constants import MAX_HISTORY_LIMIT
from ..container import Container
from ..hours.engine import summarize_day


def register(app: Flask, container: Container) -> None:
    login_required, _ = auth_decorators(container.identity)

    @app.route("/api/punches", methods=["POST"], endpoint="submit_punch")
    @json_endpoint
    @login_required
    def submit_punch():
        body = json_body()
        punch = container.punch_ledger.record_punch(
            g.subject.subject_id,
            body.get("kind"),
            body.get("timestamp") or container.clock(),
            body.get("note"),
            client_ref=body.get("client_ref"),
        )
        return ok({"message": f"{punch.kind.value} recorded", "punch": punch_to_dict(punch)}, 201)

    @app.route("/api/punches/today", methods=["GET"], endpoint="today_punches")
    @json_endpoint
    @login_required
    def today_punches():
        day = parse_iso_date(request.args["day"]) if request.args.get("day") else container.clock().date()
        subject_id = g.subject.subject_id

        punches = container.punch_ledger.punches_for_day(subject_id, day)
        effective = container.adjustment_workflow.effective_timeline(subject_id, punches)
        summary = summarize_day(day, effective)
        return ok(
            {
                "day": day.isoformat(),
                "punches": [punch_to_dict(p) for p in punches],
                "summary": summary_to_dict(summary),
            }
        )

    @app.route("/api/punches/history", methods=["GET"], endpoint="punch_history")
    @json_endpoint
    @login_required
    def punch_history():
        day = parse_iso_date(request.args["day"]) if request.args.get("day") else None
        limit = parse_limit(request.args.get("limit"), default=container.history_limit, maximum=MAX_HISTORY_LIMIT)
        subject_id = g.subject.subject_id

        punches = container.punch_ledger.history(subject_id, day=day, limit=limit)
        effective = container.adjustment_workflow.effective_timeline(subject_id, punches)
        return ok({"punches": [effective_to_dict(p) for p in effective]})

    @app.route("/api/punches/report", methods=["GET"], endpoint="hours_report")
    @json_endpoint
    @login_required
    def hours_report():
        start = parse_iso_date(request.args.get("start", ""))
        end = parse_iso_date(request.args.get("end", ""))
        report = container.hours_report_service.build_report(subject_id=g.subject.subject_id, start=start, end=end)
        return ok({"rows": report.rows, "summary": report.summary})
