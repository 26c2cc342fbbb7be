from __future__ import annotations
import logging
import re
from typing import Any, Dict

import bcrypt
from flask_jwt_extended import create_access_token, create_refresh_token
from psycopg2.errors import UniqueViolation

from pawfund.errors import ApiError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.models.case import unassign_doctor
from pawfund.models.doctor import (
    create_doctor,
    deactivate_doctor as deactivate_doctor_row,
    get_doctor,
    get_doctor_by_email,
    update_doctor as update_doctor_row,
)
from pawfund.models.donor import create_donor, get_donor_by_email
from pawfund.models.welfare import create_welfare, get_welfare_by_email, update_welfare_profile
from pawfund.utils.db import transaction
from pawfund.utils.payload import text

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@]+@[^@]+\.[^@]+$")

ROLES = ("donor", "welfare", "doctor")


def _lookup_by_email(role: str):
    return {
        "donor": get_donor_by_email,
        "welfare": get_welfare_by_email,
        "doctor": get_doctor_by_email,
    }.get(role)


def _normalize_email(email: str | None) -> str:
    return text(email).lower()


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def make_tokens(account_id: str, role: str) -> Dict[str, str]:
    claims = {"role": role}
    identity = str(account_id)
    return {
        "access_token": create_access_token(identity=identity, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=identity, additional_claims=claims),
    }


def _check_credentials(name: str | None, email: str, password: str) -> None:
    if not text(name):
        raise ValidationError("name is required")
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")


def _email_taken(cur, email: str, owner_id: str | None = None) -> bool:
    """True when another account of any role already uses ``email``."""
    for role in ROLES:
        account = _lookup_by_email(role)(cur, email)
        if account and str(account["id"]) != str(owner_id):
            return True
    return False


def _public(account: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in account.items() if k != "password_hash"}


def signup_donor(data: dict) -> Dict[str, Any]:
    email = _normalize_email(data.get("email"))
    password = str(data.get("password") or "")
    _check_credentials(data.get("name"), email, password)

    try:
        with transaction() as cur:
            if _email_taken(cur, email):
                raise ConflictError("Email already registered")
            donor = create_donor(
                cur,
                name=text(data["name"]),
                email=email,
                password_hash=_hash_password(password),
            )
    except UniqueViolation:
        raise ConflictError("Email already registered")
    logger.info("donor %s registered", donor["id"])
    return {"user": _public(donor), "role": "donor", **make_tokens(donor["id"], "donor")}


def signup_welfare(data: dict) -> Dict[str, Any]:
    email = _normalize_email(data.get("email"))
    password = str(data.get("password") or "")
    _check_credentials(data.get("name"), email, password)
    for field in ("phone", "address", "description"):
        if not text(data.get(field)):
            raise ValidationError(f"{field} is required")

    try:
        with transaction() as cur:
            if _email_taken(cur, email):
                raise ConflictError("Email already registered")
            welfare = create_welfare(
                cur,
                name=text(data["name"]),
                email=email,
                password_hash=_hash_password(password),
                phone=text(data["phone"]),
                address=text(data["address"]),
                description=text(data["description"]),
                website=text(data.get("website")),
            )
    except UniqueViolation:
        raise ConflictError("Email already registered")
    logger.info("welfare organization %s registered", welfare["id"])
    return {
        "user": _public(welfare),
        "role": "welfare",
        **make_tokens(welfare["id"], "welfare"),
    }


def register_doctor(welfare_id: str, data: dict) -> Dict[str, Any]:
    """Doctors are created by their welfare organization, not self-registered."""
    email = _normalize_email(data.get("email"))
    password = str(data.get("password") or "")
    _check_credentials(data.get("name"), email, password)
    specialization = text(data.get("specialization"))
    if not specialization:
        raise ValidationError("specialization is required")

    try:
        with transaction() as cur:
            if _email_taken(cur, email):
                raise ConflictError("Email already registered")
            doctor = create_doctor(
                cur,
                name=text(data["name"]),
                email=email,
                password_hash=_hash_password(password),
                specialization=specialization,
                welfare_id=welfare_id,
            )
    except UniqueViolation:
        raise ConflictError("Email already registered")
    logger.info("doctor %s registered by welfare %s", doctor["id"], welfare_id)
    return doctor


def login(data: dict) -> Dict[str, Any]:
    email = _normalize_email(data.get("email"))
    password = str(data.get("password") or "")
    role = (text(data.get("role")) or "donor").lower()
    lookup = _lookup_by_email(role)
    if lookup is None:
        raise ValidationError("role must be one of: donor, welfare, doctor")

    with transaction() as cur:
        account = lookup(cur, email)
    if not account or not _verify_password(password, account.get("password_hash") or ""):
        logger.info("failed %s login for %s", role, email)
        raise ApiError("Invalid credentials", 401)
    if role == "doctor" and not account.get("is_active", True):
        raise ApiError("This doctor account has been deactivated", 403)
    return {"user": _public(account), "role": role, **make_tokens(account["id"], role)}


def _changed_email(cur, raw: Any, owner_id: str) -> str | None:
    if raw in (None, ""):
        return None
    email = _normalize_email(raw)
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    if _email_taken(cur, email, owner_id):
        raise ConflictError("Email already registered")
    return email


def update_profile(welfare_id: str, data: dict) -> Dict[str, Any]:
    """Partial update; omitted or blank fields keep their value."""
    fields = {f: text(data.get(f)) or None for f in ("name", "phone", "address", "description", "website")}
    try:
        with transaction() as cur:
            fields["email"] = _changed_email(cur, data.get("email"), welfare_id)
            welfare = update_welfare_profile(cur, welfare_id, **fields)
    except UniqueViolation:
        raise ConflictError("Email already registered")
    if not welfare:
        raise NotFoundError("welfare organization not found")
    logger.info("welfare %s updated its profile", welfare_id)
    return welfare


def _own_doctor(cur, welfare_id: str, doctor_id: str) -> Dict[str, Any]:
    doctor = get_doctor(cur, doctor_id)
    if not doctor:
        raise NotFoundError("doctor not found")
    if str(doctor["welfare_id"]) != str(welfare_id):
        raise ForbiddenError("doctor belongs to another organization")
    return doctor


def update_doctor(welfare_id: str, doctor_id: str, data: dict) -> Dict[str, Any]:
    try:
        with transaction() as cur:
            _own_doctor(cur, welfare_id, doctor_id)
            doctor = update_doctor_row(
                cur,
                doctor_id,
                name=text(data.get("name")) or None,
                specialization=text(data.get("specialization")) or None,
                email=_changed_email(cur, data.get("email"), doctor_id),
            )
    except UniqueViolation:
        raise ConflictError("Email already registered")
    logger.info("doctor %s updated by welfare %s", doctor_id, welfare_id)
    return doctor


def deactivate_doctor(welfare_id: str, doctor_id: str) -> Dict[str, Any]:
    """Soft delete: the account can no longer log in and loses its case assignments."""
    with transaction() as cur:
        _own_doctor(cur, welfare_id, doctor_id)
        doctor = deactivate_doctor_row(cur, doctor_id)
        if doctor is None:
            raise ConflictError("doctor is already deactivated")
        released = unassign_doctor(cur, doctor_id)
    logger.info(
        "doctor %s deactivated by welfare %s, %d case(s) unassigned", doctor_id, welfare_id, released
    )
    return {"doctor": doctor, "unassignedCases": released}
