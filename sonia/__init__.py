"""
Sonia: emotional wellness journaling service.

Layers:
- sonia/domain → schemas, errors, constants, prompts
- sonia/core → persistence (atomic JSON documents, per-user locks), ids, logging
- sonia/app → FastAPI routes, services, LLM providers
"""

__version__ = "0.1.0"
