"""
Skill Portal backend: courses, assignments, grading and discussions.
"""

__version__ = "1.0.0"
