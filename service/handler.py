# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

import logging

from service.identity import IdentityNotFound
from service.models import (
    DeletionFailure,
    DeletionOutcome,
    DeletionRequest,
    DeletionSuccess,
    FailureKind,
    InvocationContext,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_PREFIX = "An error occurred while deleting the user: "


class DeletionHandler:
    """
    Deletes a user from the identity provider on behalf of an admin.

    Checks run in order and the first failure is returned:
    authentication, target id, caller profile and admin flag. The identity
    provider is only called once all of them pass. Provider and store
    exceptions never escape; they come back as a DeletionFailure.
    """

    def __init__(self, profiles, identities):
        self.profiles = profiles
        self.identities = identities
        self._checks = (
            self._check_authenticated,
            self._check_target,
            self._check_admin,
        )

    def handle(self, context: InvocationContext, request: DeletionRequest) -> DeletionOutcome:
        for check in self._checks:
            failure = check(context, request)
            if failure is not None:
                return failure

        return self._delete(context.caller_id, request.target_id)

    def _check_authenticated(self, context, request):
        return authentication_failure(context)

    def _check_target(self, context, request):
        if not request.target_id:
            logger.warning("User %s sent a delete user request without a uid", context.caller_id)
            return DeletionFailure(
                kind=FailureKind.INVALID_ARGUMENT,
                message="User ID (uid) is required",
            )
        return None

    def _check_admin(self, context, request):
        caller_id = context.caller_id
        try:
            profile = self.profiles.get_profile(caller_id)
        except Exception as e:
            logger.exception("Error loading the account of %s", caller_id)
            return _internal_failure(e)

        if profile is None:
            logger.warning("Caller account not found: %s", caller_id)
            return DeletionFailure(
                kind=FailureKind.PERMISSION_DENIED,
                message="Caller account not found",
            )
        if profile.is_admin is not True:
            logger.warning("%s is not authorized to delete users", caller_id)
            return DeletionFailure(
                kind=FailureKind.PERMISSION_DENIED,
                message="Only admins can delete users",
            )
        return None

    def _delete(self, caller_id, target_id):
        try:
            self.identities.delete_identity(target_id)
        except IdentityNotFound:
            logger.warning("User %s not found in Authentication", target_id)
            return DeletionFailure(
                kind=FailureKind.NOT_FOUND,
                message="User not found in Authentication",
            )
        except Exception as e:
            logger.exception("Error deleting user %s", target_id)
            return _internal_failure(e)

        logger.info("User %s deleted from Authentication by admin %s", target_id, caller_id)
        return DeletionSuccess(
            message=f"User {target_id} successfully deleted from Authentication",
            target_id=target_id,
            deleted_by=caller_id,
        )


def authentication_failure(context: InvocationContext):
    if not context.caller_id:
        logger.warning("Rejected delete user request without an authenticated caller")
        return DeletionFailure(
            kind=FailureKind.UNAUTHENTICATED,
            message="User must be authenticated to delete users",
        )
    return None


def _internal_failure(error):
    return DeletionFailure(kind=FailureKind.INTERNAL, message=INTERNAL_ERROR_PREFIX + str(error))
