"""
Configuration module for the rental availability engine.
"""

from .settings import supabase_config, app_config, sync_config, notification_config

__all__ = ['supabase_config', 'app_config', 'sync_config', 'notification_config']
