"""Relay a user's currently playing Spotify track into Telegram chats."""
