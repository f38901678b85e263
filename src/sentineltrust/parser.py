"""Decode and encode IAM trust policy JSON.

AWS is loose about shapes: ``Action`` may be a string or a list, ``Principal``
may be ``"*"`` or an object whose values are themselves strings or lists.
Decoding maps all of that onto the frozen models in :mod:`.models`; encoding
produces the same shapes back (a single value collapses to a bare string).
"""
from __future__ import annotations

import json
from typing import Any, Union

from .models import (
    ConditionBlock,
    Principal,
    Statement,
    StringOrSlice,
    TrustPolicyDocument,
)


class TrustPolicyError(ValueError):
    """Raised when a trust policy document cannot be parsed or is invalid."""


def parse_trust_policy(data: Union[bytes, str]) -> TrustPolicyDocument:
    """
    Parse *data* into a TrustPolicyDocument.

    Raises:
        TrustPolicyError: empty input, malformed JSON, or the first structural
            defect found (missing Version, missing Statement, then per
            statement a bad Effect or an empty Action).
    """
    if not data:
        raise TrustPolicyError("empty trust policy")

    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise TrustPolicyError(f"invalid JSON: {exc}") from exc

    try:
        doc = _decode_document(raw)
    except _ShapeError as exc:
        raise TrustPolicyError(f"invalid JSON: {exc}") from exc

    _validate(doc)
    return doc


def document_to_dict(doc: TrustPolicyDocument) -> dict:
    """Return *doc* in the AWS AssumeRolePolicyDocument JSON shape."""
    return {
        "Version": doc.version,
        "Statement": [statement_to_dict(s) for s in doc.statements],
    }


def dumps_trust_policy(doc: TrustPolicyDocument, indent: int = 2) -> str:
    return json.dumps(document_to_dict(doc), indent=indent)


def statement_to_dict(stmt: Statement) -> dict:
    out: dict[str, Any] = {}
    if stmt.sid:
        out["Sid"] = stmt.sid
    out["Effect"] = stmt.effect
    out["Principal"] = principal_to_json(stmt.principal)
    out["Action"] = string_or_slice_to_json(stmt.action)
    if stmt.condition:
        out["Condition"] = {
            operator: {
                key: string_or_slice_to_json(values)
                for key, values in keys.items()
            }
            for operator, keys in stmt.condition.items()
        }
    return out


def principal_to_json(principal: Principal) -> Union[str, dict]:
    if principal.wildcard:
        return "*"
    out: dict[str, Any] = {}
    # Empty sub-fields are omitted, matching how IAM itself renders principals
    if principal.aws:
        out["AWS"] = string_or_slice_to_json(principal.aws)
    if principal.service:
        out["Service"] = string_or_slice_to_json(principal.service)
    if principal.federated:
        out["Federated"] = string_or_slice_to_json(principal.federated)
    return out


def string_or_slice_to_json(values: StringOrSlice) -> Union[str, list[str]]:
    """One value -> bare string; zero or many -> list (``[]`` when empty)."""
    if len(values) == 1:
        return values[0]
    return list(values)


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------

class _ShapeError(Exception):
    """A JSON value had a shape the trust policy grammar does not allow."""


def _decode_document(raw: Any) -> TrustPolicyDocument:
    if not isinstance(raw, dict):
        raise _ShapeError("expected a JSON object")

    version = _decode_optional_string(raw.get("Version"), "Version")

    raw_statements = raw.get("Statement")
    if raw_statements is None:
        raw_statements = []
    elif isinstance(raw_statements, dict):
        raw_statements = [raw_statements]
    elif not isinstance(raw_statements, list):
        raise _ShapeError("Statement must be an object or array of objects")

    statements = tuple(_decode_statement(s) for s in raw_statements)
    return TrustPolicyDocument(version=version or "", statements=statements)


def _decode_statement(raw: Any) -> Statement:
    if not isinstance(raw, dict):
        raise _ShapeError("Statement entries must be objects")
    sid = _decode_optional_string(raw.get("Sid"), "Sid")
    return Statement(
        sid=sid or None,
        effect=_decode_optional_string(raw.get("Effect"), "Effect") or "",
        principal=_decode_principal(raw.get("Principal")),
        action=_decode_string_or_slice(raw.get("Action")),
        condition=_decode_condition(raw.get("Condition")),
    )


def _decode_optional_string(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _ShapeError(f"{name} must be a string")
    return value


def _decode_string_or_slice(value: Any) -> StringOrSlice:
    # Scalar first, then array; anything else is rejected.
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise _ShapeError("expected string or array of strings")


def _decode_principal(value: Any) -> Principal:
    if value is None:
        return Principal()
    if isinstance(value, str):
        if value == "*":
            return Principal.any()
        raise _ShapeError(f'Principal string must be "*", got {json.dumps(value)}')
    if not isinstance(value, dict):
        raise _ShapeError('expected Principal as "*" or object')
    return Principal(
        aws=_decode_string_or_slice(value.get("AWS")),
        service=_decode_string_or_slice(value.get("Service")),
        federated=_decode_string_or_slice(value.get("Federated")),
    )


def _decode_condition(value: Any) -> ConditionBlock:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _ShapeError("Condition must be an object")
    block: ConditionBlock = {}
    for operator, keys in value.items():
        if not isinstance(keys, dict):
            raise _ShapeError("Condition must be an object")
        block[operator] = {
            key: _decode_string_or_slice(values) for key, values in keys.items()
        }
    return block


def _validate(doc: TrustPolicyDocument) -> None:
    if not doc.version:
        raise TrustPolicyError("missing Version field")
    if not doc.statements:
        raise TrustPolicyError("missing Statement field")
    for i, stmt in enumerate(doc.statements):
        if stmt.effect not in ("Allow", "Deny"):
            raise TrustPolicyError(
                f"statement {i}: Effect must be Allow or Deny, got {json.dumps(stmt.effect)}"
            )
        if not stmt.action:
            raise TrustPolicyError(f"statement {i}: missing Action field")
