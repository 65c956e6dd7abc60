"""Render an approval verdict as a Markdown status block."""

from .models import ApprovalVerdict

READY_STATUS = "✅ **Status:** Ready to merge"
NOT_READY_HEADER = "⚠️ **Status:** Cannot merge yet"


def format_status(verdict: ApprovalVerdict) -> str:
    """Build the status block shown under every bot reply."""
    if verdict.ready:
        return READY_STATUS

    missing = [
        f"**{team.roster.name}** ({team.roster.mentions()})"
        for team in verdict.teams
        if not team.ok
    ]
    blocked = [
        f"**{team.roster.name}** (by {', '.join(f'@{u}' for u in team.blocked_by)})"
        for team in verdict.teams
        if team.blocked_by
    ]

    lines = [NOT_READY_HEADER]
    if missing:
        lines.append(f"- Missing approval from: {', '.join(missing)}")
    if blocked:
        lines.append(f"- Blocked by: {', '.join(blocked)}")
    return "\n".join(lines)
