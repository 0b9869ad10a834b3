"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (voice adapter, reply/permission/presence adapters, cog)
- Audio (yt-dlp metadata provider)
"""
