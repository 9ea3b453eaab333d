"""Core domain package for telequery.

Core contains command parsing, identity resolution, login and message-log
buffering without any Telegram or HTTP-specific code, keeping the business
logic portable.
"""
