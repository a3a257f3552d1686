"""
Voting Allocation Engine
========================

Client-side allocation and synchronization for two server-tracked credit
pools: TDH (votes on submissions) and REP (reputation per artist and
category).

ARCHITECTURE:
    user action → MutationController
                → CreditLedger (read current pool)
                → normalize()        (snap the target)
                → CreditLedger.apply_optimistic
                → RemoteSessionClient (via ReauthRetryPolicy)
                → authoritative refresh → CreditLedger.set_authoritative
                   or rollback on failure

PUBLIC API:
- normalize, calculate_boost, TDH_PATTERN, REP_PATTERN: pure snapping rules
- CreditLedger: optimistic ledger for both pools
- StalenessGuard: generation tokens and refresh throttling
- VotingSession: explicit session context
- MutationController: boost / vote / assign-rep orchestration
- RemoteSessionClient, UserData: remote contract
- errors: AllocationError hierarchy
"""

from .types import (
    PoolKind,
    MutationKind,
    MutationState,
    PatternRule,
    CreditPool,
    PoolSnapshot,
    AllocationRequest,
    RefreshThrottleState,
    MutationResult,
)

from .errors import (
    AllocationError,
    ValidationError,
    InvalidAmountError,
    NoSubmissionError,
    MutationInProgressError,
    InsufficientCreditError,
    RemoteError,
    AuthError,
    SessionExpiredError,
    NetworkError,
    ServerError,
)

from .normalizer import (
    normalize,
    calculate_boost,
    rule_for,
    TDH_PATTERN,
    REP_PATTERN,
)

from .ledger import CreditLedger
from .guard import StalenessGuard
from .retry import ReauthRetryPolicy, is_auth_error
from .remote import RemoteSessionClient, UserData, SignMessage
from .session import VotingSession
from .controller import MutationController
from .formatting import format_compact_tdh, format_votes

__all__ = [
    # Types
    'PoolKind',
    'MutationKind',
    'MutationState',
    'PatternRule',
    'CreditPool',
    'PoolSnapshot',
    'AllocationRequest',
    'RefreshThrottleState',
    'MutationResult',

    # Errors
    'AllocationError',
    'ValidationError',
    'InvalidAmountError',
    'NoSubmissionError',
    'MutationInProgressError',
    'InsufficientCreditError',
    'RemoteError',
    'AuthError',
    'SessionExpiredError',
    'NetworkError',
    'ServerError',

    # Normalizer
    'normalize',
    'calculate_boost',
    'rule_for',
    'TDH_PATTERN',
    'REP_PATTERN',

    # Engine
    'CreditLedger',
    'StalenessGuard',
    'ReauthRetryPolicy',
    'is_auth_error',
    'RemoteSessionClient',
    'UserData',
    'SignMessage',
    'VotingSession',
    'MutationController',

    # Display
    'format_compact_tdh',
    'format_votes',
]
