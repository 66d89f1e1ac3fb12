from mergegate_core.rules.base import BaseRule
from mergegate_core.rules.emoji_approval import EmojiApprovalRule
from mergegate_core.rules.file_coverage import FileCoverageRule
from mergegate_core.rules.platform_approval import PlatformApprovalRule

# Priority order used by the combinator.
RULES: dict[str, type[BaseRule]] = {
    FileCoverageRule.name: FileCoverageRule,
    EmojiApprovalRule.name: EmojiApprovalRule,
    PlatformApprovalRule.name: PlatformApprovalRule,
}

__all__ = [
    "RULES",
    "BaseRule",
    "EmojiApprovalRule",
    "FileCoverageRule",
    "PlatformApprovalRule",
]
