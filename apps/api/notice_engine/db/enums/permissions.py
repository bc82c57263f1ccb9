"""Role permission helper sets."""

from notice_engine.db.enums.auth import Role

# Roles that can work the takedown queue (triage, actions, notes)
ROLES_CAN_REVIEW = {Role.REVIEWER, Role.ADMIN}

# Roles that can close notices and decide counter-notices/appeals
ROLES_CAN_RESOLVE = {Role.ADMIN}

# Roles that can file counter-notices and appeals
ROLES_CAN_DISPUTE = {Role.ARTIST, Role.ADMIN}
