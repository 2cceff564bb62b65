# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

import logging
import os

import boto3

from common.decorators import required_env_vars
from common.validate import error_response, json_response, validated
from service.handler import INTERNAL_ERROR_PREFIX, DeletionHandler, authentication_failure
from service.identity import CognitoIdentityProvider
from service.models import DeletionFailure, DeletionRequest, FailureKind, InvocationContext
from service.profiles import DynamoProfileStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@required_env_vars({
    "ACCOUNTS_DYNAMO_TABLE": ["dynamodb:GetItem"],
    "COGNITO_USER_POOL_ID": ["cognito-idp:AdminDeleteUser"],
})
def build_handler():
    region_name = os.environ.get("AWS_REGION", "us-east-1")
    dynamodb = boto3.resource("dynamodb", region_name=region_name)
    accounts_table = dynamodb.Table(os.environ["ACCOUNTS_DYNAMO_TABLE"])
    cognito = boto3.client("cognito-idp", region_name=region_name)

    return DeletionHandler(
        profiles=DynamoProfileStore(accounts_table),
        identities=CognitoIdentityProvider(cognito, os.environ["COGNITO_USER_POOL_ID"]),
    )


def to_response(outcome):
    if isinstance(outcome, DeletionFailure):
        return error_response(outcome.kind.value, outcome.message)
    return json_response(200, outcome)


@validated(op="delete")
def delete_user(event, context, current_user, name, data):
    invocation = InvocationContext(caller_id=current_user)
    payload = data.get("data") or {}
    request = DeletionRequest(target_id=payload.get("uid"))

    failure = authentication_failure(invocation)
    if failure is not None:
        return to_response(failure)

    try:
        handler = build_handler()
    except Exception as e:
        logger.exception("Error creating the AWS clients")
        return to_response(
            DeletionFailure(kind=FailureKind.INTERNAL, message=INTERNAL_ERROR_PREFIX + str(e))
        )

    return to_response(handler.handle(invocation, request))
