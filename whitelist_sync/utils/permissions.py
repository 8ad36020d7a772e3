from __future__ import annotations

import discord

from whitelist_sync.utils.config import settings


def is_moderator(inter: discord.Interaction) -> bool:
    uid_roles = {r.id for r in getattr(inter.user, "roles", [])}
    allowed = set(settings.roles_from_csv(settings.DISCORD_ADMIN_ROLE_IDS)) | set(
        settings.roles_from_csv(settings.DISCORD_MOD_ROLE_IDS)
    )
    return bool(uid_roles & allowed)


async def require_moderator(inter: discord.Interaction) -> bool:
    if not is_moderator(inter):
        await inter.response.send_message("No permission.", ephemeral=True)
        return False
    return True
