"""Adapters connecting the core pipeline to Telethon, HTTP and the filesystem."""
