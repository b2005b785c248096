"""
Core infrastructure for tts-relay: configuration, logging, metrics.
"""
