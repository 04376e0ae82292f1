"""
Service layer for the Skill Portal.

Each module owns one area of the domain. Functions take a database session
and, where authorization matters, the caller's ``Principal``; they raise
``skillportal.core.errors`` exceptions instead of HTTP errors.
"""
