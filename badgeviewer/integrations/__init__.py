from __future__ import annotations

__all__: list[str] = ["BadgeBaseClient", "BadgeStringOwnershipProvider", "HelixClient"]

from badgeviewer.integrations.badgebase_api import BadgeBaseClient
from badgeviewer.integrations.helix_api import HelixClient
from badgeviewer.integrations.ownership_provider import BadgeStringOwnershipProvider
