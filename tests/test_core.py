"""
Tests for the delete_user Lambda entrypoint.

Requests go through the real @validated transport. The caller is supplied as
API Gateway authorizer claims, and build_handler is patched to return a
handler over mocked capabilities.
"""

import json
import os
import unittest
from unittest.mock import MagicMock, Mock, patch

from service import core
from service.handler import DeletionHandler
from service.identity import IdentityNotFound, IdentityProviderError
from service.models import Profile


def lambda_event(uid=None, caller_id=None, body=None):
    event = {
        "path": "/admin/delete_user",
        "httpMethod": "POST",
        "headers": {"Content-Type": "application/json"},
        "body": body if body is not None else json.dumps({"data": {"uid": uid}} if uid else {"data": {}}),
    }
    if caller_id:
        event["requestContext"] = {"authorizer": {"claims": {"cognito:username": caller_id}}}
    return event


class TestDeleteUserEndpoint(unittest.TestCase):

    def setUp(self):
        self.profiles = Mock()
        self.identities = Mock()
        self.profiles.get_profile.side_effect = lambda account_id: {
            "admin-1": Profile(account_id="admin-1", is_admin=True),
            "user-2": Profile(account_id="user-2", is_admin=False),
        }.get(account_id)

        self.build_patcher = patch(
            "service.core.build_handler",
            return_value=DeletionHandler(self.profiles, self.identities),
        )
        self.build_patcher.start()

    def tearDown(self):
        self.build_patcher.stop()

    def invoke(self, event):
        response = core.delete_user(event, {})
        return response["statusCode"], json.loads(response["body"])

    def assertError(self, status, body, expected_status, kind):
        self.assertEqual(status, expected_status)
        self.assertFalse(body["success"])
        self.assertEqual(body["error"]["kind"], kind)

    def test_admin_deletes_user(self):
        status, body = self.invoke(lambda_event(uid="user-42", caller_id="admin-1"))

        self.assertEqual(status, 200)
        self.assertEqual(
            body, {"success": True, "message": "User user-42 successfully deleted from Authentication"}
        )
        self.identities.delete_identity.assert_called_once_with("user-42")

    def test_unauthenticated_caller(self):
        status, body = self.invoke(lambda_event(uid="user-42"))

        self.assertError(status, body, 401, "unauthenticated")
        self.identities.delete_identity.assert_not_called()

    def test_unauthenticated_wins_over_malformed_body(self):
        status, body = self.invoke(lambda_event(body="{not json"))

        self.assertError(status, body, 401, "unauthenticated")

    def test_unauthenticated_wins_over_missing_path(self):
        for path in (None, "/admin/other"):
            event = lambda_event(uid="user-42")
            event["path"] = path

            status, body = self.invoke(event)

            self.assertError(status, body, 401, "unauthenticated")
        core.build_handler.assert_not_called()

    def test_missing_uid(self):
        status, body = self.invoke(lambda_event(caller_id="admin-1"))

        self.assertError(status, body, 400, "invalid-argument")
        self.assertEqual(body["error"]["message"], "User ID (uid) is required")
        self.identities.delete_identity.assert_not_called()

    def test_malformed_body_is_invalid_argument(self):
        status, body = self.invoke(lambda_event(caller_id="admin-1", body=json.dumps({"data": {"uid": 7}})))

        self.assertError(status, body, 400, "invalid-argument")
        self.identities.delete_identity.assert_not_called()

    def test_non_admin_caller(self):
        status, body = self.invoke(lambda_event(uid="user-42", caller_id="user-2"))

        self.assertError(status, body, 403, "permission-denied")
        self.assertEqual(body["error"]["message"], "Only admins can delete users")
        self.identities.delete_identity.assert_not_called()

    def test_caller_without_account(self):
        status, body = self.invoke(lambda_event(uid="user-42", caller_id="ghost"))

        self.assertError(status, body, 403, "permission-denied")
        self.assertEqual(body["error"]["message"], "Caller account not found")

    def test_unknown_target(self):
        self.identities.delete_identity.side_effect = IdentityNotFound("user-42")

        status, body = self.invoke(lambda_event(uid="user-42", caller_id="admin-1"))

        self.assertError(status, body, 404, "not-found")

    def test_provider_failure(self):
        self.identities.delete_identity.side_effect = IdentityProviderError("Rate exceeded")

        status, body = self.invoke(lambda_event(uid="user-42", caller_id="admin-1"))

        self.assertError(status, body, 500, "internal")
        self.assertIn("Rate exceeded", body["error"]["message"])


class TestBuildHandler(unittest.TestCase):

    @patch("service.core.boto3")
    def test_clients_are_built_from_environment(self, mock_boto3):
        table = MagicMock()
        mock_boto3.resource.return_value.Table.return_value = table
        cognito = MagicMock()
        mock_boto3.client.return_value = cognito

        with patch.dict(os.environ, {
            "ACCOUNTS_DYNAMO_TABLE": "accounts",
            "COGNITO_USER_POOL_ID": "us-east-1_pool",
            "AWS_REGION": "us-west-2",
        }):
            handler = core.build_handler()

        mock_boto3.resource.assert_called_once_with("dynamodb", region_name="us-west-2")
        mock_boto3.resource.return_value.Table.assert_called_once_with("accounts")
        mock_boto3.client.assert_called_once_with("cognito-idp", region_name="us-west-2")
        self.assertIs(handler.profiles.table, table)
        self.assertIs(handler.identities.client, cognito)
        self.assertEqual(handler.identities.user_pool_id, "us-east-1_pool")

    @patch("service.core.boto3")
    def test_missing_configuration_is_internal(self, mock_boto3):
        event = lambda_event(uid="user-42", caller_id="admin-1")

        with patch.dict(os.environ, {}, clear=True):
            response = core.delete_user(event, {})

        body = json.loads(response["body"])
        self.assertEqual(response["statusCode"], 500)
        self.assertEqual(body["error"]["kind"], "internal")
        self.assertIn("ACCOUNTS_DYNAMO_TABLE", body["error"]["message"])
        mock_boto3.client.assert_not_called()

    @patch("service.core.boto3")
    def test_unauthenticated_wins_over_missing_configuration(self, mock_boto3):
        with patch.dict(os.environ, {}, clear=True):
            response = core.delete_user(lambda_event(uid="user-42"), {})

        body = json.loads(response["body"])
        self.assertEqual(response["statusCode"], 401)
        self.assertEqual(body["error"], {
            "kind": "unauthenticated",
            "message": "User must be authenticated to delete users",
        })
        mock_boto3.resource.assert_not_called()


class TestBearerTokenEndpoint(unittest.TestCase):

    def setUp(self):
        self.env_patcher = patch.dict(os.environ, {"OAUTH_ISSUER_BASE_URL": "https://issuer.example.com"})
        self.env_patcher.start()
        self.identities = Mock()
        profiles = Mock()
        profiles.get_profile.return_value = Profile(account_id="admin-1", is_admin=True)
        self.build_patcher = patch(
            "service.core.build_handler",
            return_value=DeletionHandler(profiles, self.identities),
        )
        self.build_patcher.start()

    def tearDown(self):
        self.build_patcher.stop()
        self.env_patcher.stop()

    def bearer_event(self):
        event = lambda_event(uid="user-42")
        event["headers"]["Authorization"] = "Bearer token"
        return event

    @patch("common.validate.jwt")
    @patch("common.validate.requests.get")
    def test_signing_key_without_use_member(self, mock_get, mock_jwt):
        mock_get.return_value = Mock(json=Mock(return_value={
            "keys": [{"kty": "RSA", "kid": "key-1", "n": "n1", "e": "AQAB"}]
        }))
        mock_jwt.get_unverified_header.return_value = {"kid": "key-1"}
        mock_jwt.decode.return_value = {"username": "admin-1"}

        response = core.delete_user(self.bearer_event(), {})

        self.assertEqual(response["statusCode"], 200)
        self.identities.delete_identity.assert_called_once_with("user-42")

    @patch("common.validate.jwt")
    @patch("common.validate.requests.get")
    def test_malformed_jwks_is_unauthenticated(self, mock_get, mock_jwt):
        mock_jwt.get_unverified_header.return_value = {"kid": "key-1"}

        for document in (["not-a-dict"], {"keys": None}, {"keys": [{"kty": "RSA"}]}):
            mock_get.return_value = Mock(json=Mock(return_value=document))

            response = core.delete_user(self.bearer_event(), {})

            self.assertEqual(response["statusCode"], 401, document)
            self.assertEqual(json.loads(response["body"])["error"]["kind"], "unauthenticated")
        self.identities.delete_identity.assert_not_called()


if __name__ == "__main__":
    unittest.main()
