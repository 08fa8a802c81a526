from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ConflictError, NotFoundError, ValidationError
from officehub.models.department import Department
from officehub.models.enums import Role
from officehub.models.staff import Staff
from officehub.models.user import User
from officehub.services.activity import log_activity
from officehub.services.users import create_user, validate_password


def get_department(db: Session, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department not found")
    return department


def _ensure_name_available(db: Session, name: str, *, exclude_id: Optional[int] = None) -> None:
    query = db.query(Department.id).filter(Department.name == name)
    if exclude_id is not None:
        query = query.filter(Department.id != exclude_id)
    if query.first():
        raise ConflictError(f"A department named '{name}' already exists")


def list_departments(db: Session, *, actor: User, include_inactive: bool = False) -> List[Department]:
    rbac.require(actor, "departments", rbac.READ)
    query = db.query(Department)
    if not include_inactive:
        query = query.filter(Department.is_active.is_(True))
    return query.order_by(Department.name.asc()).all()


def create_department(
    db: Session,
    *,
    actor: User,
    name: str,
    description: Optional[str] = None,
    manager_id: Optional[int] = None,
    head: Optional[dict] = None,
) -> Department:
    """
    Create a department. When ``head`` (full_name, email, password) is given a
    DepartmentHead login is provisioned and installed as the manager.
    """
    rbac.require(actor, "departments", rbac.CREATE)
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("Department name is required")
    _ensure_name_available(db, clean_name)
    if head and manager_id:
        raise ValidationError("Provide either manager_id or head details, not both")
    if head:
        validate_password(head.get("password") or "")

    department = Department(name=clean_name, description=description)
    db.add(department)
    db.flush()

    if head:
        manager = create_user(
            db,
            actor=None,
            email=head["email"],
            full_name=head["full_name"],
            role=Role.DEPARTMENT_HEAD,
            password=head["password"],
            phone=head.get("phone"),
            department_id=department.id,
        )
        department.manager_id = manager.id
    elif manager_id:
        _assign_manager(db, department, manager_id)

    db.add(department)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="DEPARTMENT_CREATED",
        entity_type=Department.__tablename__,
        entity_id=department.id,
        message=f"Department {department.name} created",
    )
    return department


def _assign_manager(db: Session, department: Department, manager_id: int) -> None:
    manager = db.get(User, manager_id)
    if manager is None or not manager.is_active:
        raise ValidationError("Manager must be an active user")
    if manager.role != Role.DEPARTMENT_HEAD:
        raise ValidationError("Manager must have the DepartmentHead role")
    manager.department_id = department.id
    department.manager_id = manager.id
    db.add(manager)


def update_department(db: Session, department: Department, *, actor: User, changes: dict) -> Department:
    rbac.require(actor, "departments", rbac.UPDATE)
    if changes.get("name") is not None:
        clean_name = changes["name"].strip()
        if not clean_name:
            raise ValidationError("Department name is required")
        _ensure_name_available(db, clean_name, exclude_id=department.id)
        department.name = clean_name
    if "description" in changes:
        department.description = changes["description"]
    if changes.get("is_active") is not None:
        department.is_active = changes["is_active"]
    if changes.get("manager_id") is not None:
        _assign_manager(db, department, changes["manager_id"])
    db.add(department)
    db.flush()
    return department


def delete_department(db: Session, department: Department, *, actor: User) -> None:
    rbac.require(actor, "departments", rbac.DELETE)
    attached = db.query(Staff.id).filter(Staff.department_id == department.id).count()
    if attached:
        raise ConflictError(
            f"Department {department.name} still has {attached} staff member(s)",
            details="Reassign staff before deleting the department",
        )
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="DEPARTMENT_DELETED",
        entity_type=Department.__tablename__,
        entity_id=department.id,
        message=f"Department {department.name} deleted",
    )
    db.query(User).filter(User.department_id == department.id).update(
        {User.department_id: None}, synchronize_session="fetch"
    )
    db.delete(department)
    db.flush()
