"""Comment bodies posted by the bot."""

from .errors import MergeFailureReason, MergeRejectedError
from .policy.commands import AVAILABLE_COMMANDS, MERGE_COMMAND
from .policy.models import PullRequest, Roster

WELCOME_TEMPLATE = """
Hello @{author}! This PR is covered by the two-team review policy.

This PR requires the following approvals before it can be merged:
- At least one approval from a **{team_a_name}** team member: {team_a_members}
- At least one approval from a **{team_b_name}** team member: {team_b_members}

Once all requirements are met, you can merge this PR by commenting `{command}`.
"""

MERGE_HINTS: dict[MergeFailureReason, str] = {
    MergeFailureReason.PERMISSION_DENIED: (
        "**Possible causes:**\n"
        '- GitHub App needs "Contents: Read and write" permission\n'
        "- Branch protection rules may be blocking the merge\n"
        "- Check repository Settings → GitHub Apps for permission requests"
    ),
    MergeFailureReason.NOT_MERGEABLE: (
        "The PR may not be in a mergeable state (conflicts, checks failing, etc.)"
    ),
    MergeFailureReason.CONFLICTS: (
        "Resolve the conflicts with the base branch, then comment "
        f"`{MERGE_COMMAND}` again."
    ),
}

RULE_HINT = (
    "PR mergeable state: `{state}`\n\n"
    "Check Settings → Branches or Settings → Rules for protection rules."
)


def welcome_message(author: str, team_a: Roster, team_b: Roster) -> str:
    return WELCOME_TEMPLATE.format(
        author=author,
        team_a_name=team_a.name,
        team_a_members=team_a.mentions(),
        team_b_name=team_b.name,
        team_b_members=team_b.mentions(),
        command=MERGE_COMMAND,
    )


def changes_requested_message(reviewer: str, status: str) -> str:
    return f"⛔ Merge blocked. @{reviewer} has requested changes.\n\n{status}"


def all_approved_message(author: str, status: str) -> str:
    return (
        f"✅ All approvals received! @{author}, you can now merge this by "
        f"commenting `{MERGE_COMMAND}`.\n\n{status}"
    )


def approval_thanks_message(reviewer: str, status: str) -> str:
    return f"Thanks, @{reviewer}!\n\n{status}"


def unknown_command_message(commenter: str, command: str, status: str) -> str:
    available = ", ".join(f"`{c}`" for c in AVAILABLE_COMMANDS)
    return (
        f"@{commenter} Invalid command: `{command}`. "
        f"Available commands: {available}\n\n{status}"
    )


def unauthorized_message(commenter: str, author: str, status: str) -> str:
    return (
        f"@{commenter} Only the PR author (@{author}) can run the "
        f"`{MERGE_COMMAND}` command.\n\n{status}"
    )


def not_approved_message(author: str, status: str) -> str:
    return f"@{author} {status}"


def merge_success_message(author: str) -> str:
    return f"✅ Merge successful! @{author}'s PR has been merged."


def merge_failure_message(error: MergeRejectedError, pull_request: PullRequest) -> str:
    """Explain a refused merge, with a hint for the failure reason."""
    message = f"Merge failed: `{error}`"
    if error.reason in (MergeFailureReason.BLOCKED, MergeFailureReason.RULE_BLOCKED):
        hint = RULE_HINT.format(state=pull_request.mergeable_state)
    else:
        hint = MERGE_HINTS.get(error.reason, "")
    if hint:
        message += f"\n\n{hint}"
    return message
