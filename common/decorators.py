# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

import logging
import os
from functools import wraps

from common.validate import ConfigurationError

logger = logging.getLogger(__name__)


def required_env_vars(env_vars):
    """
    Declares the environment variables a Lambda function needs, mapped to the
    AWS operations they are used for, and fails the invocation with a
    ConfigurationError when any of them is unset.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            missing = [name for name in env_vars if not os.environ.get(name)]
            if missing:
                logger.error("Missing required environment variables for %s: %s", f.__name__, missing)
                raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")
            return f(*args, **kwargs)

        wrapper.required_env_vars = dict(env_vars)
        return wrapper

    return decorator
