"""
routes/splits.py — Split and settlement route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit when writing, return envelope.
  - No business logic. No DB queries. No bare SQL.
  - Amounts leave the service as major-unit Decimals; the app's JSON
    provider serialises them as strings.

Endpoints (base url_prefix=/api/v1/splits):
  POST /purchases/:id/calculate   → 200  preview a split (nothing stored)
  POST /purchases/:id             → 201  compute and store a split
  GET  /purchases/:id             → 200  stored split of a purchase
  GET  /groups/:id/settlement     → 200  who pays whom in a group
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from groupsplit.app.extensions import db
from groupsplit.app.middleware.auth_middleware import require_auth
from groupsplit.app.schemas.split_schema import SplitRequestSchema
from groupsplit.app.services import settlement_service, split_service

splits_bp = Blueprint("splits", __name__)


def _minor_units_per_major() -> int:
    return current_app.config["MINOR_UNITS_PER_MAJOR"]


@splits_bp.route("/purchases/<string:purchase_id>/calculate", methods=["POST"])
@require_auth
def calculate_split(purchase_id: str):
    """POST /splits/purchases/:id/calculate — Preview only; nothing is written."""
    data = SplitRequestSchema().load(request.get_json(force=True) or {})
    result = split_service.calculate_split(
        purchase_id=purchase_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
        minor_units_per_major=_minor_units_per_major(),
    )
    return jsonify({"data": result, "warnings": []}), 200


@splits_bp.route("/purchases/<string:purchase_id>", methods=["POST"])
@require_auth
def create_split(purchase_id: str):
    """
    POST /splits/purchases/:id — Compute and store a split.
    Replaces any split previously stored for the purchase in one commit.
    """
    data = SplitRequestSchema().load(request.get_json(force=True) or {})
    result = split_service.create_split(
        purchase_id=purchase_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
        minor_units_per_major=_minor_units_per_major(),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@splits_bp.route("/purchases/<string:purchase_id>", methods=["GET"])
@require_auth
def get_split(purchase_id: str):
    """GET /splits/purchases/:id — The split currently stored for a purchase."""
    result = split_service.get_split(
        purchase_id=purchase_id,
        caller_id=g.user_id,
        session=db.session,
        minor_units_per_major=_minor_units_per_major(),
    )
    return jsonify({"data": result, "warnings": []}), 200


@splits_bp.route("/groups/<string:group_id>/settlement", methods=["GET"])
@require_auth
def get_group_settlement(group_id: str):
    """
    GET /splits/groups/:id/settlement

    Recomputed from purchases and splits on every call; never cached.
    """
    result = settlement_service.get_group_settlement(
        group_id=group_id,
        caller_id=g.user_id,
        session=db.session,
        minor_units_per_major=_minor_units_per_major(),
    )
    return jsonify({"data": result, "warnings": []}), 200
