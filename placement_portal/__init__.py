"""
NSEC Placement Portal
Backend for the institute's placement cell.

Architecture:
- MongoDB: admin, faculty and student accounts in one role-tagged collection
- SMTP: OTP and password reset emails
- JWT: stateless sessions for the single-page frontend
"""

__version__ = "1.0.0"
