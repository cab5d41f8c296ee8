from __future__ import annotations

from flask import Flask, g, request

from ..common.http import auth_decorators, json_body, json_endpoint, ok
from ..common.serialization import request_to_dict, review_item_to_dict
from ..common.validators import parse_limit, parse_request_status
from ..core.constants import DEFAULT_REVIEW_LIMIT
from ..core.enums import RequestStatus
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, reviewer_required = auth_decorators(container.identity)

    @app.route("/api/corrections", methods=["POST"], endpoint="submit_correction")
    @json_endpoint
    @login_required
    def submit_correction():
        body = json_body()
        req = container.adjustment_workflow.submit(
            subject_id=g.subject.subject_id,
            punch_id=body.get("punch_id"),
            proposed_timestamp=body.get("proposed_timestamp"),
            justification=body.get("justification"),
            client_ref=body.get("client_ref"),
        )
        return ok({"message": "Correction submitted for review", "request": request_to_dict(req)}, 201)

    @app.route("/api/corrections", methods=["GET"], endpoint="my_corrections")
    @json_endpoint
    @login_required
    def my_corrections():
        limit = parse_limit(request.args.get("limit"), default=200, maximum=DEFAULT_REVIEW_LIMIT)
        rows = container.adjustment_workflow.list_for_subject(g.subject.subject_id, limit=limit)
        return ok({"requests": [request_to_dict(r) for r in rows]})

    @app.route("/api/corrections/<int:request_id>", methods=["DELETE"], endpoint="withdraw_correction")
    @json_endpoint
    @login_required
    def withdraw_correction(request_id: int):
        container.adjustment_workflow.withdraw(subject_id=g.subject.subject_id, request_id=request_id)
        return ok({"message": "Correction withdrawn"})

    @app.route("/api/admin/corrections", methods=["GET"], endpoint="review_queue")
    @json_endpoint
    @reviewer_required
    def review_queue():
        raw = (request.args.get("status") or RequestStatus.PENDING.value).strip()
        status = None if raw.upper() == "ALL" else parse_request_status(raw)
        limit = parse_limit(request.args.get("limit"), default=DEFAULT_REVIEW_LIMIT, maximum=DEFAULT_REVIEW_LIMIT)
        items = container.adjustment_workflow.list_for_review(status=status, limit=limit)
        return ok({"requests": [review_item_to_dict(i) for i in items]})

    @app.route("/api/admin/corrections/<int:request_id>/decision", methods=["POST"], endpoint="decide_correction")
    @json_endpoint
    @reviewer_required
    def decide_correction(request_id: int):
        body = json_body()
        req = container.adjustment_workflow.decide(
            request_id=request_id,
            decision=body.get("decision"),
            reviewer_response=body.get("reviewer_response"),
            reviewer_id=g.subject.subject_id,
        )
        return ok({"message": f"Correction {req.status.value.lower()}", "request": request_to_dict(req)})
