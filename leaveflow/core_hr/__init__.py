"""Core HR module: Employee model, schemas, hierarchy and administration."""

from leaveflow.core_hr.models import Employee

__all__ = ["Employee"]
