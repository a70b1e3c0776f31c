"""
API server package — HTTP interface.

Receives launch webhooks, serves the raw and scored launch feeds and token
analyses. Handles client rate limiting and response caching, and delegates
to the store, scoring and analysis layers.
"""
