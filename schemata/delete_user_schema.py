# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

# "uid" is optional here. A missing target is reported by the handler as
# invalid-argument once the caller has been authenticated.
delete_user_schema = {
    "type": "object",
    "properties": {
        "uid": {
            "type": "string",
            "description": "The id of the user to remove from Authentication.",
        },
    },
}
