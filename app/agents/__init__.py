from app.agents.context import TenantContext, gather_context
from app.agents.proposer import extract_json_object, parse_decision, propose_decision

__all__ = [
    "TenantContext",
    "gather_context",
    "extract_json_object",
    "parse_decision",
    "propose_decision",
]
