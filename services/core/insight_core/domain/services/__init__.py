"""Domain services for Insight Stream."""

from insight_core.domain.services.account_recovery import (
    AccountRecoveryService,
    RecoveryError,
)
from insight_core.domain.services.api_keys import ApiKeyService
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.auth import AuthService, hash_password, verify_password
from insight_core.domain.services.mailer import Mailer, MailerError
from insight_core.domain.services.mentions import BatchWriteResult, MentionService
from insight_core.domain.services.reddit_profiles import RedditProfileService
from insight_core.domain.services.users import UserError, UserNotFoundError, UserService

__all__ = [
    "AccountRecoveryService",
    "ApiKeyService",
    "AuditService",
    "AuthService",
    "BatchWriteResult",
    "Mailer",
    "MailerError",
    "MentionService",
    "RecoveryError",
    "RedditProfileService",
    "UserError",
    "UserNotFoundError",
    "UserService",
    "hash_password",
    "verify_password",
]
