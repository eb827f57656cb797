"""
Pydantic schemas for API request/response models.
"""

from .script import *
