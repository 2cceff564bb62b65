# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

import json
import logging
import os
from functools import wraps

import requests
from dotenv import load_dotenv
from jose import jwt
from jose.exceptions import JOSEError
from jsonschema import validate
from jsonschema.exceptions import ValidationError

from common.encoders import CombinedEncoder
from schemata.permissions import get_permission_checker
from schemata.schema_validation_rules import rules

load_dotenv(dotenv_path=".env.local")

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256"]
JWKS_TIMEOUT = 10
JWK_MEMBERS = ("kty", "kid", "use", "alg", "n", "e")


class HTTPException(Exception):
    kind = "internal"

    def __init__(self, status_code, message):
        super().__init__(message)
        self.status_code = status_code


class BadRequest(HTTPException):
    kind = "invalid-argument"

    def __init__(self, message="Bad Request"):
        super().__init__(400, message)


class Unauthorized(HTTPException):
    kind = "unauthenticated"

    def __init__(self, message="Unauthorized"):
        super().__init__(401, message)


class Forbidden(HTTPException):
    kind = "permission-denied"

    def __init__(self, message="Forbidden"):
        super().__init__(403, message)


class ConfigurationError(HTTPException):
    def __init__(self, message="Service is not configured"):
        super().__init__(500, message)


STATUS_BY_KIND = {
    BadRequest.kind: 400,
    Unauthorized.kind: 401,
    Forbidden.kind: 403,
    "not-found": 404,
    HTTPException.kind: 500,
}


def json_response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, cls=CombinedEncoder),
    }


def error_response(kind, message):
    return json_response(
        STATUS_BY_KIND.get(kind, 500),
        {"success": False, "error": {"kind": kind, "message": message}},
    )


def parse_token(event):
    token = None
    normalized_headers = {k.lower(): v for k, v in (event.get('headers') or {}).items()}
    authorization_key = 'authorization'

    if authorization_key in normalized_headers:
        parts = normalized_headers[authorization_key].split()

        if len(parts) == 2:
            scheme, token = parts
            if scheme.lower() != 'bearer':
                token = None

    if not token:
        raise Unauthorized("No Access Token Found")

    return token


def get_claims(event, context, token):
    # https://cognito-idp.<Region>.amazonaws.com/<userPoolId>/.well-known/jwks.json

    oauth_issuer_base_url = os.getenv('OAUTH_ISSUER_BASE_URL')
    oauth_audience = os.getenv('OAUTH_AUDIENCE')
    if not oauth_issuer_base_url:
        raise Unauthorized("OAUTH_ISSUER_BASE_URL is not provided.")

    jwks_url = f'{oauth_issuer_base_url}/.well-known/jwks.json'
    jwks = requests.get(jwks_url, timeout=JWKS_TIMEOUT).json()
    if not isinstance(jwks, dict):
        raise Unauthorized("Issuer returned an invalid JWKS document")

    kid = jwt.get_unverified_header(token).get("kid")
    if not kid:
        raise Unauthorized("Access token has no key id")

    rsa_key = {}
    for key in jwks.get("keys", []):
        if isinstance(key, dict) and key.get("kid") == kid:
            # "use" and "alg" are optional JWK members
            rsa_key = {name: key[name] for name in JWK_MEMBERS if name in key}

    if not rsa_key:
        logger.warning("No RSA Key Found, likely an invalid OAUTH_ISSUER_BASE_URL")
        raise Unauthorized("No Valid Access Token Found")

    options = {} if oauth_audience else {"verify_aud": False}
    return jwt.decode(
        token,
        rsa_key,
        algorithms=ALGORITHMS,
        audience=oauth_audience,
        issuer=oauth_issuer_base_url,
        options=options,
    )


def authorizer_claims(event):
    """Claims already verified by an API Gateway Cognito authorizer, if any."""
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    return authorizer.get("claims")


def caller_id_from_claims(claims):
    username = claims.get("username") or claims.get("cognito:username")
    if username:
        idp_prefix = os.getenv('IDP_PREFIX')
        if idp_prefix and username.startswith(idp_prefix + '_'):
            return username.split(idp_prefix + '_', 1)[1]
        return username
    return claims.get("sub")


def get_caller_id(event, context):
    """
    Returns the id of the verified caller, or None when the invocation carries
    no credential that can be verified.
    """
    claims = authorizer_claims(event)
    if claims is None:
        try:
            token = parse_token(event)
            claims = get_claims(event, context, token)
        except Unauthorized as e:
            logger.warning("Unauthenticated invocation: %s", e)
            return None
        except JOSEError as e:
            logger.warning("Access token failed verification: %s", e)
            return None
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error("Unable to retrieve the issuer signing keys: %s", e)
            return None

    return caller_id_from_claims(claims) or None


def validate_data(name, op, payload):
    validators = rules["validators"]
    if name not in validators or op not in validators[name]:
        logger.error("Invalid data or path: %s - op:%s", name, op)
        raise BadRequest("Invalid data or path")

    validate(instance=payload, schema=validators[name][op])
    logger.debug("Data validated")


def parse_body(event):
    try:
        body = json.loads(event['body']) if event.get('body') else {}
    except json.decoder.JSONDecodeError as e:
        logger.error("JSON Decode Error: %s", e)
        return None

    if not isinstance(body, dict):
        return None
    # Callable clients wrap the payload in "data"; a bare payload is accepted too.
    return body.get("data") if "data" in body else body


def parse_and_validate(current_user, event, op, validate_body=True):
    name = event.get('path')
    if not current_user:
        # the wrapped function rejects the caller before reading the request
        logger.info("No authenticated caller for event path: %s", name)
        return [name, {"data": None}]

    logger.info("Validating data for user: %s, event path: %s, operation: %s", current_user, name, op)

    if not name:
        logger.error("Invalid request, no event path provided")
        raise BadRequest("Unable to perform the operation, invalid request.")

    payload = {}
    if validate_body:
        payload = parse_body(event)
        try:
            validate_data(name, op, payload)
        except ValidationError as e:
            logger.error("Validation error: %s", e.message)
            payload = None

    data = {"data": payload}

    permission_checker = get_permission_checker(current_user, name, op, data)
    if not permission_checker(current_user, data):
        logger.warning("User: %s does not have permission for operation: %s", current_user, op)
        raise Forbidden("User does not have permission to perform the operation.")
    logger.info("User: %s has permission for operation: %s", current_user, op)

    return [name, data]


def validated(op, validate_body=True):
    """
    Resolves the verified caller and the validated payload of an API Gateway
    event, then calls f(event, context, current_user, name, data).

    current_user is None when the caller could not be authenticated. The
    request is then passed through unread and the wrapped function must
    reject it. data["data"] is None when the body is malformed or fails its
    schema. f returns the full Lambda response.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(event, context):
            try:
                current_user = get_caller_id(event, context)
                [name, data] = parse_and_validate(current_user, event, op, validate_body)

                return f(event, context, current_user, name, data)
            except HTTPException as e:
                logger.warning("Request failed with %s: %s", e.status_code, e)
                return error_response(e.kind, str(e))

        return wrapper

    return decorator
