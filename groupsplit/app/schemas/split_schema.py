"""
schemas/split_schema.py — Marshmallow schema for split requests.

Validation responsibility:
  - This file (request shape, 400):
      - rule is one of equal | quantity | custom     (INVALID_SPLIT_RULE)
      - participant_ids is a non-empty list of non-blank ids
      - no id appears twice in participant_ids or custom_splits (DUPLICATE_PARTICIPANT)
      - custom_splits present when rule is 'custom'   (CUSTOM_SPLITS_REQUIRED)
      - each percentage is a Decimal between 0 and 100
  - services/split_calculator.py:
      - percentages sum to 100 ± 0.01                 (PERCENTAGE_SUM_MISMATCH, 422)
  - services/membership_service.py:
      - every participant is a group member           (PARTICIPANT_NOT_MEMBER, 422)

IMPORTANT: Inherits from marshmallow.Schema directly so unit tests can load
it without a Flask application context.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from groupsplit.app.errors import ErrorCode
from groupsplit.app.models.split import SplitRule


def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or whitespace only."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _has_duplicates(values: list[str]) -> bool:
    return len(values) != len(set(values))


class CustomSplitInputSchema(Schema):
    """One {user_id, percentage} entry of the custom_splits array."""

    user_id = fields.Str(
        required=True,
        validate=[validate.Length(max=36), _validate_non_empty_after_trim],
    )

    # Decimal, never float: "33.333" stays exactly 33.333.
    percentage = fields.Decimal(
        required=True,
        validate=validate.Range(
            min=Decimal("0"),
            max=Decimal("100"),
            error="percentage must be between 0 and 100.",
        ),
    )


class SplitRequestSchema(Schema):
    """
    POST /splits/purchases/:id/calculate and POST /splits/purchases/:id

    Both endpoints take the same body:
        {"rule": "equal", "participant_ids": ["u1", "u2"], "custom_splits": [...]}
    """

    rule = fields.Enum(
        SplitRule,
        required=True,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_SPLIT_RULE},
    )

    participant_ids = fields.List(
        fields.Str(validate=[validate.Length(max=36), _validate_non_empty_after_trim]),
        required=True,
        validate=validate.Length(min=1, error="participant_ids must not be empty."),
    )

    custom_splits = fields.List(
        fields.Nested(CustomSplitInputSchema),
        load_default=None,
    )

    @validates_schema
    def validate_split_coherence(self, data: dict, **kwargs) -> None:
        """
        Cross-field checks:

        1. DUPLICATE_PARTICIPANT: an id appears twice in participant_ids.
        2. CUSTOM_SPLITS_REQUIRED: rule is 'custom' and custom_splits is
           missing or empty.
        3. DUPLICATE_PARTICIPANT: a user appears twice in custom_splits.

        The 100% sum rule is left to the split calculator (422).
        """
        participant_ids = data.get("participant_ids") or []
        if _has_duplicates(participant_ids):
            raise ValidationError({"participant_ids": [ErrorCode.DUPLICATE_PARTICIPANT]})

        if data.get("rule") != SplitRule.CUSTOM:
            return

        custom_splits = data.get("custom_splits")
        if not custom_splits:
            raise ValidationError({"custom_splits": [ErrorCode.CUSTOM_SPLITS_REQUIRED]})

        if _has_duplicates([s["user_id"] for s in custom_splits]):
            raise ValidationError({"custom_splits": [ErrorCode.DUPLICATE_PARTICIPANT]})
