# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

import logging

from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

USER_NOT_FOUND_CODE = "UserNotFoundException"


class IdentityProviderError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class IdentityNotFound(IdentityProviderError):
    def __init__(self, user_id):
        super().__init__(f"User {user_id} not found in Authentication", USER_NOT_FOUND_CODE)
        self.user_id = user_id


class CognitoIdentityProvider:
    """Removes users from a Cognito user pool."""

    def __init__(self, client, user_pool_id):
        self.client = client
        self.user_pool_id = user_pool_id

    def delete_identity(self, user_id):
        logger.debug("Deleting %s from user pool %s", user_id, self.user_pool_id)
        try:
            self.client.admin_delete_user(UserPoolId=self.user_pool_id, Username=user_id)
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code")
            if code == USER_NOT_FOUND_CODE:
                raise IdentityNotFound(user_id) from e
            raise IdentityProviderError(error.get("Message") or str(e), code) from e
        except BotoCoreError as e:
            raise IdentityProviderError(str(e)) from e
