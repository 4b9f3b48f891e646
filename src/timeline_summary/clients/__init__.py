"""
External service clients for the timeline summary pipeline.
"""

from .openai_client import OpenAIClient
from .salesforce_client import SalesforceClient

__all__ = [
    'OpenAIClient',
    'SalesforceClient',
]
