"""
API exceptions shared by the store-scoped apps.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class InvalidInput(APIException):
    """Malformed identity or pricing input (400)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid_input'


class DuplicateIdentity(APIException):
    """An active identity already holds this (email, store, role) key (409)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This email is already registered in this store for this role.'
    default_code = 'duplicate_identity'

    def __init__(self, existing_role=None, detail=None):
        if detail is None and existing_role:
            detail = f'This email is already registered in this store as {existing_role}.'
        super().__init__(detail=detail)
        self.existing_role = existing_role


class AgreementConflict(APIException):
    """Another open wholesaler agreement was written concurrently (409)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This user already has an open wholesaler agreement in this store.'
    default_code = 'agreement_conflict'
