from datetime import datetime, timezone
from typing import Any, List, Literal

from pydantic import BaseModel

from .models import Tool, ToolContext


class Finding(BaseModel):
    claim: str
    evidence: str
    source: str
    confidence: Literal["high", "medium", "low"]


class EvidencePackInput(BaseModel):
    topic: str
    findings: List[Finding]


async def create_evidence_pack(ctx: ToolContext, args: EvidencePackInput) -> Any:
    """Bundle findings for later RAG indexing."""
    return {
        "ok": True,
        "topic": args.topic,
        "created": datetime.now(tz=timezone.utc).isoformat(),
        "findings": [f.model_dump() for f in args.findings],
        "summary": "\n".join(f.claim for f in args.findings),
        "citations": [f.source for f in args.findings],
    }


create_evidence_pack_tool = Tool(
    name="createEvidencePack",
    id="research.createEvidencePack",
    description="Compile research findings into a structured evidence pack for RAG indexing",
    input_model=EvidencePackInput,
    handler=create_evidence_pack,
    category="research",
)
