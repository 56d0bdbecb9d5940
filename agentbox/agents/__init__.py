"""
Agent services.

Each agent is an independently deployable FastAPI app wrapping a
``ChatAgent`` and its tool subset:
- ``agentbox.agents.content``  (port 3104)
- ``agentbox.agents.research`` (port 3001)
"""
