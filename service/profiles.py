# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

import logging

from service.models import Profile

logger = logging.getLogger(__name__)


class DynamoProfileStore:
    """Reads account profiles from the accounts table, keyed by "user"."""

    def __init__(self, table):
        self.table = table

    def get_profile(self, account_id):
        response = self.table.get_item(Key={"user": account_id}, ConsistentRead=True)
        if "Item" not in response:
            logger.info("No account item found for user: %s", account_id)
            return None

        item = response["Item"]
        # only a stored boolean true grants admin
        return Profile(account_id=account_id, is_admin=item.get("admin") is True)
