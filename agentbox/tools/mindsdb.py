from typing import Any, Dict

from pydantic import BaseModel

from ..policy.guard import Requirement, guard
from ..policy.models import Failure
from .models import Tool, ToolContext


class QueryInput(BaseModel):
    sql: str


async def query(ctx: ToolContext, args: QueryInput) -> Any:
    settings = ctx.config.sql

    async def _call() -> Any:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if settings.key:
            headers["Authorization"] = f"Bearer {settings.key}"
        url = f"{(settings.url or '').rstrip('/')}/api/sql/query"
        async with ctx.http_client() as client:
            r = await client.post(url, json={"query": args.sql}, headers=headers)
        if not r.is_success:
            return Failure(status=r.status_code, reason=r.text)
        data = r.json() or {}
        rows = data.get("data") or []
        return {
            "ok": True,
            "rows": rows,
            "columnNames": data.get("column_names") or [],
            "rowCount": len(rows),
        }

    return await guard([Requirement("MINDSDB_URL", settings.url)], _call)


mindsdb_query = Tool(
    name="mindsdbQuery",
    id="mindsdb.query",
    description=(
        "Run SQL against MindsDB for ML predictions and data insights. Use for "
        "student pass probability, job fit scores, market trends."
    ),
    input_model=QueryInput,
    handler=query,
    category="data",
)
