# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

from .delete_user_schema import delete_user_schema

rules = {
    "validators": {
        "/admin/delete_user": {"delete": delete_user_schema},
    },
}
