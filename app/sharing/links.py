"""Public URLs for share links."""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.urls import reverse

if TYPE_CHECKING:
    from sharing.config import SharingConfig
    from sharing.models import Share


def build_share_url(share: Share, config: SharingConfig) -> str:
    """
    Absolute URL of the public landing endpoint for a share.

    Example:
        build_share_url(share, config)
        # "https://files.example.com/api/v1/sharing/public/Zx8k2PqLm3.../"
    """
    path = reverse("sharing:public-share", kwargs={"token": share.share_token})
    return f"{config.public_base_url}{path}"
