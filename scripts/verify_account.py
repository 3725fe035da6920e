#!/usr/bin/env python3
"""
Verify Account Script

Marks an account verified directly in MongoDB, for when a student cannot
finish the OTP flow and no admin can log in to use /api/auth/verify-account.

Usage: python scripts/verify_account.py student@nsec.ac.in
"""
import argparse
import sys
sys.path.insert(0, '.')

from placement_portal.core.errors import NotFound
from placement_portal.services.user_service import UserService


def verify_account(email: str) -> bool:
    user = UserService().mark_verified(email)
    if user is None:
        return False
    print(f"✅ {user['role']} {user['email']} verified successfully")
    return True


def main():
    parser = argparse.ArgumentParser(description="Mark a portal account as verified.")
    parser.add_argument("email", help="Email of the account to verify")
    args = parser.parse_args()

    if not verify_account(args.email):
        print(f"❌ {NotFound.default_message}: {args.email}")
        sys.exit(1)


if __name__ == "__main__":
    main()
