"""
AgentBox: Airtable-backed context hydration and agent services.
"""

__version__ = "1.0.0"
