"""
Admin Routes

GET /admin/exists - Whether any admin exists (public)
POST /admin/create-first-admin - Bootstrap the first admin (public, once)
POST /admin/create-admin - Create another admin
GET /admin/first - Name and email of the earliest admin (any signed-in user)
DELETE /admin/{admin_id} - Delete another admin
GET /admin/profile - Get own profile
PUT /admin/profile - Update own profile
POST /admin/faculty - Create faculty
GET /admin/faculty - List faculty created by me
DELETE /admin/faculty/{faculty_id} - Delete faculty created by me
GET /admin/students - List verified students
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from placement_portal.core.auth import get_current_admin, get_current_user, hash_password
from placement_portal.core.errors import NotFound, PermissionDenied, ValidationFailed
from placement_portal.services.user_service import (
    UserService, get_user_service, new_user_doc, to_object_id, to_public
)
from placement_portal.schemas.schemas import (
    AdminCreate, AdminUpdate, AdminExistsResponse, AdminSummary, FacultyCreate,
    UserResponse, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def _admin_doc(data: AdminCreate) -> dict:
    return new_user_doc(
        role="admin",
        name=data.name,
        email=data.email,
        phone=data.phone,
        password_hash=hash_password(data.password),
        is_verified=True,
    )


@router.get("/exists", response_model=AdminExistsResponse)
def admin_exists(users: UserService = Depends(get_user_service)):
    """Used by the frontend to decide whether to show the bootstrap form."""
    return AdminExistsResponse(exists=users.admin_exists())


@router.post("/create-first-admin", response_model=UserResponse, status_code=201)
def create_first_admin(data: AdminCreate, users: UserService = Depends(get_user_service)):
    """
    Create the very first admin. Refused once any admin exists.

    Concurrent bootstrap requests are settled by the unique bootstrap index,
    so at most one of them succeeds.
    """
    doc = _admin_doc(data)
    users.insert_first_admin(doc)
    logger.info("First admin created: %s", doc["email"])
    return UserResponse(**to_public(doc))


@router.post("/create-admin", response_model=UserResponse, status_code=201)
def create_admin(
    data: AdminCreate,
    admin: dict = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
):
    """Create an additional admin. Only admins can do this."""
    doc = _admin_doc(data)
    users.insert(doc)
    logger.info("Admin %s created by admin %s", doc["email"], admin["email"])
    return UserResponse(**to_public(doc))


@router.get("/first", response_model=AdminSummary)
def get_first_admin(
    user: dict = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Contact details of the portal's original admin."""
    first = users.get_first_admin()
    if first is None:
        raise NotFound("No admin found")
    return AdminSummary(id=str(first["_id"]), name=first["name"], email=first["email"])


@router.delete("/{admin_id}", response_model=MessageResponse)
def delete_admin(
    admin_id: str,
    admin: dict = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
):
    """Delete another admin. Admins cannot delete themselves or the last admin."""
    if to_object_id(admin_id) == admin["_id"]:
        raise PermissionDenied("Cannot delete your own account")
    if not users.delete_admin(admin_id):
        raise NotFound("Admin not found")
    logger.info("Admin %s deleted by admin %s", admin_id, admin["email"])
    return MessageResponse(message="Admin deleted")


@router.get("/profile", response_model=UserResponse)
def get_profile(admin: dict = Depends(get_current_admin)):
    return UserResponse(**to_public(admin))


@router.put("/profile", response_model=UserResponse)
def update_profile(
    data: AdminUpdate,
    admin: dict = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
):
    """Update profile. Only provided fields are updated."""
    fields = data.model_dump(exclude_none=True)
    if not fields:
        raise ValidationFailed("No fields to update")

    updated = users.update_profile(str(admin["_id"]), fields)
    return UserResponse(**to_public(updated))


@router.post("/faculty", response_model=UserResponse, status_code=201)
def create_faculty(
    data: FacultyCreate,
    admin: dict = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
):
    """Create a faculty account owned by the calling admin."""
    doc = new_user_doc(
        role="faculty",
        name=data.name,
        email=data.email,
        phone=data.phone,
        password_hash=hash_password(data.password),
        is_verified=True,
        specialization=data.specialization.strip(),
        created_by=admin["_id"],
    )
    users.insert(doc)
    logger.info("Faculty %s created by admin %s", doc["email"], admin["email"])
    return UserResponse(**to_public(doc))


@router.get("/faculty", response_model=List[UserResponse])
def list_managed_faculty(
    admin: dict = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
):
    """Faculty created by the calling admin, newest first."""
    return [
        UserResponse(**to_public(doc))
        for doc in users.list_faculty_by_creator(str(admin["_id"]))
    ]


@router.delete("/faculty/{faculty_id}", response_model=MessageResponse)
def delete_faculty(
    faculty_id: str,
    admin: dict = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
):
    """Delete a faculty account. Only its creator can delete it."""
    if to_object_id(faculty_id) is None or not users.delete_faculty(faculty_id, str(admin["_id"])):
        raise NotFound("Faculty not found or access denied")
    logger.info("Faculty %s deleted by admin %s", faculty_id, admin["email"])
    return MessageResponse(message="Faculty deleted")


@router.get("/students", response_model=List[UserResponse])
def list_students(
    admin: dict = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
):
    """All verified students."""
    return [UserResponse(**to_public(doc)) for doc in users.list_verified_students()]
