from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ForbiddenError, NotFoundError, ValidationError
from officehub.models.enums import EmploymentType, Role
from officehub.models.staff import Staff
from officehub.models.user import User
from officehub.services.activity import log_activity
from officehub.services.codes import staff_code, unique_code
from officehub.services.departments import get_department
from officehub.services.users import create_user, ensure_email_available, normalize_email

_USER_FIELDS = ("full_name", "email", "phone")


def _scoped_query(db: Session, user: User):
    rbac.require(user, "staff", rbac.READ)
    query = db.query(Staff)
    if user.role == Role.ADMIN:
        return query
    if user.role == Role.DEPARTMENT_HEAD:
        if user.department_id is None:
            return query.filter(Staff.id.is_(None))
        return query.filter(Staff.department_id == user.department_id)
    return query.filter(Staff.user_id == user.id)


def list_staff(
    db: Session,
    *,
    user: User,
    department_id: Optional[int] = None,
    employment_type=None,
    search: Optional[str] = None,
) -> List[Staff]:
    query = _scoped_query(db, user)
    if department_id is not None:
        query = query.filter(Staff.department_id == department_id)
    if employment_type is not None:
        query = query.filter(Staff.employment_type == employment_type)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.join(User, User.id == Staff.user_id).filter(
            User.full_name.ilike(pattern) | User.email.ilike(pattern) | Staff.staff_id.ilike(pattern)
        )
    return query.order_by(Staff.id.asc()).all()


def get_staff(db: Session, *, staff_pk: int, user: User) -> Staff:
    staff = _scoped_query(db, user).filter(Staff.id == staff_pk).first()
    if staff is None:
        if db.get(Staff, staff_pk) is not None:
            raise ForbiddenError("You do not have access to this staff record")
        raise NotFoundError("Staff member not found")
    return staff


def _check_department_scope(actor: User, department_id: Optional[int]) -> None:
    if actor.role == Role.DEPARTMENT_HEAD and department_id != actor.department_id:
        raise ForbiddenError("Department heads can only manage staff in their own department")


def create_staff(db: Session, *, actor: User, data: dict) -> Staff:
    rbac.require(actor, "staff", rbac.CREATE)
    department_id = data.get("department_id")
    if actor.role == Role.DEPARTMENT_HEAD and department_id is None:
        department_id = actor.department_id
    _check_department_scope(actor, department_id)
    if department_id is not None:
        get_department(db, department_id)
    if not (data.get("full_name") or "").strip():
        raise ValidationError("Full name is required")

    user = create_user(
        db,
        actor=None,
        email=data["email"],
        full_name=data["full_name"].strip(),
        role=Role.STAFF,
        password=data.get("password"),
        phone=data.get("phone"),
        department_id=department_id,
    )
    staff = Staff(
        staff_id=unique_code(db, Staff.staff_id, staff_code),
        user_id=user.id,
        department_id=department_id,
        position=data.get("position"),
        employment_type=data.get("employment_type") or EmploymentType.FULL_TIME,
        hire_date=data.get("hire_date"),
        base_salary=data.get("base_salary"),
        address=data.get("address"),
        emergency_contact=data.get("emergency_contact"),
    )
    db.add(staff)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="STAFF_CREATED",
        entity_type=Staff.__tablename__,
        entity_id=staff.id,
        message=f"Staff {staff.staff_id} created for {user.email}",
    )
    return staff


def update_staff(db: Session, staff: Staff, *, actor: User, changes: dict) -> Staff:
    rbac.require(actor, "staff", rbac.UPDATE)
    _check_department_scope(actor, staff.department_id)
    if "department_id" in changes and changes["department_id"] is not None:
        _check_department_scope(actor, changes["department_id"])
        get_department(db, changes["department_id"])

    user = staff.user
    if changes.get("email") is not None:
        email = normalize_email(changes["email"])
        ensure_email_available(db, email, exclude_user_id=user.id)
        changes["email"] = email
    for field in _USER_FIELDS:
        value = changes.pop(field, None)
        if value is not None:
            setattr(user, field, value)
    for field, value in changes.items():
        setattr(staff, field, value)
    if "department_id" in changes:
        user.department_id = staff.department_id
    db.add(user)
    db.add(staff)
    db.flush()
    return staff


def delete_staff(db: Session, staff: Staff, *, actor: User) -> None:
    rbac.require(actor, "staff", rbac.DELETE)
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="STAFF_DELETED",
        entity_type=Staff.__tablename__,
        entity_id=staff.id,
        message=f"Staff {staff.staff_id} deleted",
    )
    user = staff.user
    db.delete(staff)
    if user is not None:
        user.is_active = False
        db.add(user)
    db.flush()
