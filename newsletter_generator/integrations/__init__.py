"""
External service integrations for Newsletter Generator.

This module contains clients for integrating with external services
like generation providers, research APIs, image generation and the
Supabase-backed newsletter store.
"""
