"""
SessionClient - HTTP implementation of the remote session contract.

Talks to the voting API over httpx with a bearer token obtained by signing
a server challenge with the connected wallet.

Usage:
    client = SessionClient(wallet="0xabc...")
    await client.authenticate(signer)
    data = await client.refresh_user_data()
    await client.submit_vote(submission_id, 10067)
    await client.close()

Error mapping:
    401                 → AuthError
    other 4xx/5xx       → ServerError (server text preserved)
    transport failure   → NetworkError
    malformed payload   → ServerError
"""
import logging
from typing import Any, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError as PayloadError

from allocation.errors import AuthError, NetworkError, RemoteError, ServerError
from allocation.remote import RemoteSessionClient, SignMessage, UserData
from config import Settings, get_settings
from models.api.voting import (
    LoginRequest,
    LoginResponse,
    NonceResponse,
    RepAssignRequest,
    RepCreditResponse,
    RepRatingResponse,
    SubmissionPayload,
    UserDataResponse,
    VoteRequest,
)
from models.domain.submission import Submission

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)


def _segment(value: str) -> str:
    return quote(value, safe='')


class SessionClient(RemoteSessionClient):
    """
    Voting API client.

    One instance per connected wallet; the bearer token is replaced on every
    successful authenticate().
    """

    def __init__(
        self,
        wallet: str = "",
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.wallet = wallet
        self.token: Optional[str] = None
        self.client: Optional[httpx.AsyncClient] = None
        self._transport = transport

    def set_wallet_address(self, wallet: str):
        """Switch wallets; the old token is dropped."""
        if wallet != self.wallet:
            self.token = None
        self.wallet = wallet

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    async def _ensure_client(self):
        """Ensure httpx client exists."""
        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                headers={'User-Agent': self.settings.user_agent},
                timeout=httpx.Timeout(self.settings.http_timeout_seconds),
                transport=self._transport,
            )

    async def close(self):
        """Close the client."""
        if self.client and not self.client.is_closed:
            await self.client.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    def _auth_headers(self) -> dict:
        if not self.token:
            return {}
        return {'Authorization': f'Bearer {self.token}'}

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text.strip() or response.reason_phrase
        if isinstance(data, dict):
            return str(data.get('error') or data.get('message') or data)
        return str(data)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        await self._ensure_client()
        try:
            response = await self.client.request(method, path, headers=self._auth_headers(), **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

        if response.status_code == 401:
            raise AuthError(self._error_text(response) or "Unauthorized", status=401)
        if response.status_code >= 400:
            raise ServerError(self._error_text(response), status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServerError(f"{method} {path} returned invalid JSON", status=response.status_code) from e

    @staticmethod
    def _parse(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except PayloadError as e:
            raise ServerError(f"Unexpected {model.__name__} payload: {e.error_count()} error(s)") from e

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self, sign_message: SignMessage) -> None:
        if not self.wallet:
            raise AuthError("No wallet address set")

        params = {'signer_address': self.wallet}
        challenge = self._parse(NonceResponse, await self._request('GET', '/auth/nonce', params=params))

        try:
            signature = await sign_message(challenge.nonce)
        except Exception as e:
            raise AuthError(f"Signing rejected: {e}") from e

        self.token = None
        body = LoginRequest(
            server_signature=challenge.server_signature,
            client_signature=signature,
        )
        try:
            data = await self._request('POST', '/auth/login', params=params, json=body.model_dump())
        except RemoteError as e:
            raise AuthError(f"Login rejected: {e.message}", status=e.status) from e

        self.token = self._parse(LoginResponse, data).token
        logger.info(f"🔐 Authenticated {self.wallet[:6]}...{self.wallet[-4:]}")

    # =========================================================================
    # Writes
    # =========================================================================

    async def submit_vote(self, submission_id: str, total_amount: int) -> None:
        body = VoteRequest(rating=total_amount)
        await self._request('POST', f'/drops/{_segment(submission_id)}/ratings', json=body.model_dump())
        logger.debug(f"Vote {submission_id} = {total_amount}")

    async def assign_rep(self, artist_identity: str, total_amount: int, category: str) -> None:
        body = RepAssignRequest(amount=total_amount, category=category)
        await self._request(
            'POST',
            f'/profiles/{_segment(artist_identity)}/rep/rating',
            json=body.model_dump(),
        )
        logger.debug(f"REP {artist_identity} [{category}] = {total_amount}")

    # =========================================================================
    # Reads
    # =========================================================================

    def _wave_params(self) -> dict:
        return {'wave_id': self.settings.wave_id} if self.settings.wave_id else {}

    async def refresh_user_data(self) -> UserData:
        params = {'wallet': self.wallet, **self._wave_params()}
        response = self._parse(UserDataResponse, await self._request('GET', '/voting/user-data', params=params))
        return UserData(
            voter=response.to_voter(self.wallet),
            user_votes=response.user_votes,
            user_votes_map=response.user_votes_map,
        )

    async def get_rep_rating(self, artist_identity: str, category: str) -> int:
        data = await self._request(
            'GET',
            f'/profiles/{_segment(artist_identity)}/rep/rating',
            params={'category': category, 'rater': self.wallet},
        )
        return self._parse(RepRatingResponse, data or {}).rating

    async def get_rep_credit(self) -> int:
        data = await self._request('GET', f'/profiles/{_segment(self.wallet)}/rep/credit')
        return self._parse(RepCreditResponse, data or {}).rep_credit

    async def get_submissions(self) -> List[Submission]:
        data = await self._request('GET', '/voting/submissions', params=self._wave_params())
        if isinstance(data, dict):
            data = data.get('data', [])
        return [self._parse(SubmissionPayload, item).to_domain() for item in data or []]
