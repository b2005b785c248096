"""
Remote speech API access and supporting infrastructure.

    - client.py: httpx client for the ElevenLabs REST API
    - status.py: classification of failed remote calls
    - storage.py: storage backends for generated audio
    - rate_limit.py: per-client request budgets
"""
