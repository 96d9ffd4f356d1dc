# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""The one-shot "bot connected" message sent to the account itself."""

from __future__ import annotations

from typing import Any

from ..core.config import BotSettings


def build_caption(settings: BotSettings) -> str:
    return "\n".join(
        [
            f"╭━━ *『 {settings.bot_name} connected 』*",
            "┃",
            f"┃  |⚡| *Bot name:* {settings.bot_name}",
            f"┃  |👑| *Owner:* {settings.owner_name}",
            f"┃  |⚙️| *Mode:* {settings.mode}",
            f"┃  |🎯| *Prefix:* {settings.prefix}",
            "┃  |✅| *Status:* online & stable",
            "┃",
            "╰━━━━━━━━━━━━━━━━━━━╯",
            "",
            f"*Powered by {settings.owner_name}*",
        ]
    )


def build_announcement(settings: BotSettings) -> dict[str, Any]:
    """Message content: image + caption, decorated as a forwarded newsletter post
    with a link preview card."""
    return {
        "image": {"url": settings.announcement_image_url},
        "caption": build_caption(settings),
        "context_info": {
            "is_forwarded": True,
            "forwarding_score": 999,
            "forwarded_newsletter_message_info": {
                "newsletter_jid": settings.newsletter_jid,
                "newsletter_name": settings.display_newsletter_name,
                "server_message_id": -1,
            },
            "external_ad_reply": {
                "title": f"{settings.bot_name} bot",
                "body": f"Powered by {settings.owner_name}",
                "thumbnail_url": settings.announcement_image_url,
                "source_url": settings.channel_url,
                "media_type": 1,
                "render_larger_thumbnail": False,
            },
        },
    }
