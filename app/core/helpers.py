"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- HTTP request helpers (client IP and user-agent extraction)
- Human-readable byte sizes
- Log-safe token masking

Usage:
    from core.helpers import get_client_ip, format_file_size, mask_token

    ip = get_client_ip(request)
    label = format_file_size(2_621_440)  # "2.5 MB"
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.http import HttpRequest

# Characters of a secret token that may appear in logs
TOKEN_LOG_PREFIX_LENGTH = 8

# Stored user agents are truncated to the model column size
MAX_USER_AGENT_LENGTH = 512


def get_client_ip(request: HttpRequest) -> str:
    """
    Extract client IP from request, handling proxies.

    Checks X-Forwarded-For header for proxy chains.

    Args:
        request: Django HTTP request

    Returns:
        Client IP address string (empty when unknown)
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # First entry is the original client
        ip = x_forwarded_for.split(",")[0].strip()
    else:
        ip = request.META.get("REMOTE_ADDR", "")
    return ip


def get_user_agent(request: HttpRequest) -> str:
    """Return the request's User-Agent header, truncated for storage."""
    return request.META.get("HTTP_USER_AGENT", "")[:MAX_USER_AGENT_LENGTH]


def format_file_size(size: int | None) -> str:
    """
    Format a byte count for humans.

    Args:
        size: Size in bytes

    Returns:
        String such as "512 B", "1.5 KB", "2.5 MB" or "1.2 GB"

    Example:
        format_file_size(1536)  # "1.5 KB"
    """
    if size is None:
        return "unknown size"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"


def mask_token(token: str | None) -> str:
    """
    Return a log-safe prefix of a secret token.

    Example:
        mask_token("Zx8k2PqLm3...")  # "Zx8k2PqL..."
    """
    if not token:
        return ""
    return f"{token[:TOKEN_LOG_PREFIX_LENGTH]}..."
