"""
Record store backed by the hosted Supabase datastore.
"""

from .supabase_client import SupabaseClient, RecordStore

__all__ = ['SupabaseClient', 'RecordStore']
