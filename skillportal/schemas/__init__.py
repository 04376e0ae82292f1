"""
Request and response schemas for the Skill Portal API.
"""
