"""Persistence layer: Supabase-backed repositories returning domain records."""
