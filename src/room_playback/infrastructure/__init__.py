"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Audio (yt-dlp catalog and stream source)
- Discord (voice transport)
- AI (pydantic-ai related-track recommendations)
- Notifications (domain event publishing)
"""
