"""
User Service - CRUD operations for the users collection.

Every account lives in one collection, tagged with its role:
1. admin    - placement officers; bootstrap the portal and manage faculty
2. faculty  - created by an admin (created_by holds the admin's id)
3. student  - self-registered through the email OTP flow

Secret and internal fields (password_hash, reset_token, reset_token_expiry,
bootstrap_admin) never leave this module through to_public().
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from placement_portal.core.errors import DuplicateEmail, PermissionDenied
from placement_portal.db.mongodb import get_collection, COLLECTIONS


# Valid role tags, in resolution priority order.
ROLE_PRIORITY = ("admin", "faculty", "student")

SECRET_FIELDS = ("password_hash", "reset_token", "reset_token_expiry", "bootstrap_admin")


# ============================================================
# HELPERS
# ============================================================

def normalize_email(email: str) -> str:
    """Emails are stored trimmed and lower-cased."""
    return email.strip().lower()


def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    if isinstance(doc.get("created_by"), ObjectId):
        doc["created_by"] = str(doc["created_by"])
    return doc


def to_public(doc: dict) -> Optional[dict]:
    """Strip secrets and expose _id as id."""
    if doc is None:
        return None
    public = {k: v for k, v in doc.items() if k not in SECRET_FIELDS}
    public = serialize_doc(public)
    public["id"] = public.pop("_id")
    return public


def to_object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def new_user_doc(
    role: str,
    name: str,
    email: str,
    phone: str,
    password_hash: str,
    is_verified: bool = False,
    **extra: Any
) -> dict:
    """
    Build a user document ready for insertion.

    Extra keys hold the role-specific attributes:
    - student: course, branch, admission_year, passout_year
    - faculty: specialization, created_by
    """
    now = datetime.utcnow()
    doc = {
        "role": role,
        "name": name.strip(),
        "email": normalize_email(email),
        "phone": phone,
        "password_hash": password_hash,
        "is_verified": is_verified,
        "created_at": now,
        "updated_at": now,
    }
    doc.update(extra)
    return doc


# ============================================================
# USERS COLLECTION
# ============================================================

class UserService:
    """
    Handles user document storage.
    Email uniqueness is enforced by the unique index, not by pre-checks.
    """

    def __init__(self, collection: Collection = None):
        self.collection: Collection = (
            collection if collection is not None else get_collection(COLLECTIONS["users"])
        )

    def insert(self, doc: dict) -> str:
        """
        Insert a user document.

        Returns:
            MongoDB ObjectId as string

        Raises:
            DuplicateEmail if any account already uses the email
        """
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateEmail()
        return str(result.inserted_id)

    def replace_unverified_student(self, doc: dict) -> Optional[str]:
        """
        Atomically overwrite an unverified student record holding doc's email.
        Returns the record id, or None if no such record exists.
        """
        # insert_one may already have stamped a new _id on doc
        replacement = {k: v for k, v in doc.items() if k != "_id"}
        previous = self.collection.find_one_and_replace(
            {"email": doc["email"], "role": "student", "is_verified": False},
            replacement,
        )
        if previous is None:
            return None
        return str(previous["_id"])

    def get_by_id(self, user_id: str) -> Optional[dict]:
        """Fetch a user by ObjectId string."""
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def get_by_email(self, email: str) -> Optional[dict]:
        """Fetch the single account holding an email."""
        return self.collection.find_one({"email": normalize_email(email)})

    def admin_exists(self) -> bool:
        return self.collection.find_one({"role": "admin"}, {"_id": 1}) is not None

    def mark_verified(self, email: str) -> Optional[dict]:
        """Set is_verified regardless of role or current value."""
        return self.collection.find_one_and_update(
            {"email": normalize_email(email)},
            {"$set": {"is_verified": True, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Optional[dict]:
        """Update name/email/phone. Raises DuplicateEmail on an email clash."""
        fields = dict(fields)
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        fields["updated_at"] = datetime.utcnow()
        try:
            return self.collection.find_one_and_update(
                {"_id": to_object_id(user_id)},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise DuplicateEmail()

    # -------------------- Password reset --------------------

    def set_reset_token(self, user_id: ObjectId, token_digest: str, expiry: datetime) -> bool:
        result = self.collection.update_one(
            {"_id": user_id},
            {"$set": {"reset_token": token_digest, "reset_token_expiry": expiry}}
        )
        return result.matched_count > 0

    def redeem_reset_token(
        self, token_digest: str, role: str, password_hash: str, now: datetime
    ) -> Optional[dict]:
        """
        Replace the password of the account holding an unexpired token,
        clearing the token in the same update so it can only be used once.
        """
        return self.collection.find_one_and_update(
            {
                "role": role,
                "reset_token": token_digest,
                "reset_token_expiry": {"$gt": now},
            },
            {
                "$set": {"password_hash": password_hash, "updated_at": now},
                "$unset": {"reset_token": "", "reset_token_expiry": ""},
            },
            return_document=ReturnDocument.AFTER,
        )

    def clear_reset_token(self, token_digest: str, role: str) -> int:
        """Drop a (stale) reset token. Returns number of records touched."""
        result = self.collection.update_many(
            {"role": role, "reset_token": token_digest},
            {"$unset": {"reset_token": "", "reset_token_expiry": ""}}
        )
        return result.modified_count

    def clear_reset_token_for(self, user_id: ObjectId, token_digest: str) -> bool:
        """Drop one account's token, unless a newer request has replaced it."""
        result = self.collection.update_one(
            {"_id": user_id, "reset_token": token_digest},
            {"$unset": {"reset_token": "", "reset_token_expiry": ""}}
        )
        return result.modified_count > 0

    # -------------------- Admins --------------------

    def insert_first_admin(self, doc: dict) -> str:
        """
        Insert the bootstrap admin.

        The record carries bootstrap_admin=True, which a unique sparse index
        allows on one document only; a racing second bootstrap loses there.

        Raises:
            PermissionDenied if an admin already exists
            DuplicateEmail if a non-admin account already uses the email
        """
        if self.admin_exists():
            raise PermissionDenied("Admin user already exists")
        doc["bootstrap_admin"] = True
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            if self.collection.find_one({"bootstrap_admin": True}, {"_id": 1}) is not None:
                raise PermissionDenied("Admin user already exists")
            raise DuplicateEmail()
        return str(result.inserted_id)

    def get_first_admin(self) -> Optional[dict]:
        """The earliest-created admin account."""
        return self.collection.find_one({"role": "admin"}, sort=[("created_at", 1)])

    def delete_admin(self, admin_id: str) -> bool:
        """
        Delete an admin account, unless it is the only one left.

        Returns False when no admin has that id.
        Raises PermissionDenied when deleting would leave no admin.
        """
        oid = to_object_id(admin_id)
        if oid is None or self.collection.find_one({"_id": oid, "role": "admin"}, {"_id": 1}) is None:
            return False
        if self.collection.count_documents({"role": "admin", "_id": {"$ne": oid}}) == 0:
            raise PermissionDenied("Cannot delete the last admin")
        result = self.collection.delete_one({"_id": oid, "role": "admin"})
        return result.deleted_count > 0

    # -------------------- Admin views --------------------

    def list_faculty_by_creator(self, admin_id: str) -> List[dict]:
        cursor = self.collection.find(
            {"role": "faculty", "created_by": to_object_id(admin_id)}
        ).sort("created_at", -1)
        return list(cursor)

    def delete_faculty(self, faculty_id: str, admin_id: str) -> bool:
        """Delete a faculty record, only if admin_id created it."""
        oid = to_object_id(faculty_id)
        if oid is None:
            return False
        result = self.collection.delete_one(
            {"_id": oid, "role": "faculty", "created_by": to_object_id(admin_id)}
        )
        return result.deleted_count > 0

    def list_verified_students(self) -> List[dict]:
        cursor = self.collection.find(
            {"role": "student", "is_verified": True}
        ).sort("created_at", -1)
        return list(cursor)


def get_user_service() -> UserService:
    """FastAPI dependency - users collection service."""
    return UserService()
