from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import jwt
import requests
from pydantic import ValidationError
from requests.auth import AuthBase

from gastroapp.config import settings
from gastroapp.models.schemas import (
    CreatePatientRequest,
    Doctor,
    LoginRequest,
    Patient,
)
from gastroapp.services.credential_store import CredentialStore, default_credential_store
from gastroapp.services.results import (
    BackendFailure,
    DecodeFailure,
    Envelope,
    Result,
    StorageFailure,
    Success,
    TransportFailure,
    to_envelope,
)


class BearerTokenAuth(AuthBase):
    """Reads the stored token on every request and sets the Authorization header."""

    def __init__(self, store: CredentialStore, token_name: str):
        self.store = store
        self.token_name = token_name

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        token = self.store.get(self.token_name)
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return request


def _response_body(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _validation_summary(exc: ValidationError) -> str:
    # Field locations and error types only; input values may hold credentials.
    return "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['type']}" for e in exc.errors())


def token_expiry(token: str) -> Optional[datetime]:
    """Return the ``exp`` claim as a UTC datetime, or None when absent.

    The signature is not verified. Raises ``jwt.DecodeError`` for tokens that are not JWTs.
    """
    claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    exp = claims.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)


class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        credential_store: CredentialStore | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
        logger: logging.Logger | None = None,
    ):
        base = (base_url or "").strip() or settings.backend_url
        self.base_url = base.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.token_name = settings.token_name
        self.credentials = credential_store if credential_store is not None else default_credential_store()
        self.logger = logger or logging.getLogger(__name__)
        self.session = session or requests.Session()
        self.session.auth = BearerTokenAuth(self.credentials, self.token_name)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    async def login(self, credentials: LoginRequest | Mapping[str, Any]) -> Envelope[Any]:
        try:
            payload = LoginRequest.model_validate(credentials).model_dump()
        except ValidationError as exc:
            return self._finish(
                "login", TransportFailure(error=f"invalid login request: {_validation_summary(exc)}")
            )
        result = await self._request("POST", "/login/", json=payload)
        if isinstance(result, Success):
            result = self._store_token(result)
        return self._finish("login", result, include_error_body=True)

    async def get_all_doctors(self) -> Envelope[list[Doctor]]:
        result = await self._request("GET", "/api/get_all_doctors")
        return self._finish("get_all_doctors", result)

    async def get_doctor_by_id(self, doctor_id: str) -> Envelope[Doctor]:
        result = await self._request("GET", "/api/get_doctor", params={"id": doctor_id})
        return self._finish("get_doctor_by_id", result)

    async def create_patient(
        self, patient: CreatePatientRequest | Mapping[str, Any]
    ) -> Envelope[Patient]:
        try:
            payload = CreatePatientRequest.model_validate(patient).model_dump(exclude_none=True)
        except ValidationError as exc:
            reason = f"invalid patient payload: {_validation_summary(exc)}"
            return self._finish("create_patient", TransportFailure(error=reason))
        result = await self._request("POST", "/api/create_patient", json=payload)
        return self._finish("create_patient", result)

    async def assign_patient(self, patient_id: str) -> Envelope[Any]:
        result = await self._request(
            "POST", "/api/assign_patient", json={"patient_id": patient_id}
        )
        return self._finish("assign_patient", result)

    async def assign_drug_to_patient(self, patient_id: str) -> Envelope[Any]:
        # Same query-parameter convention as get_doctor_by_id.
        result = await self._request(
            "POST", "/api/assign_drug_to_patient", params={"id": patient_id}
        )
        return self._finish("assign_drug_to_patient", result)

    def _store_token(self, result: Success) -> Result:
        body = result.data
        token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            return DecodeFailure(status=result.status, reason="response has no access_token")
        try:
            expires = token_expiry(token)
        except (jwt.PyJWTError, ValueError, TypeError, OverflowError) as exc:
            return DecodeFailure(status=result.status, reason=f"invalid access token: {exc}")

        if expires is None:
            self.logger.info("Access token has no exp claim; not persisting it")
        else:
            try:
                self.credentials.set(self.token_name, token, expires=expires)
            except OSError as exc:
                return StorageFailure(status=result.status, reason=f"could not store access token: {exc}")
            self.logger.info("Stored access token, expires at %s", expires.isoformat())
        return Success(status=result.status, data=None)

    def _finish(self, operation: str, result: Result, include_error_body: bool = False) -> Envelope[Any]:
        if isinstance(result, Success):
            self.logger.info("%s succeeded: status=%s", operation, result.status)
        elif isinstance(result, TransportFailure):
            self.logger.warning("%s failed, no response: %s", operation, result.error)
        elif isinstance(result, BackendFailure):
            self.logger.warning("%s failed: status=%s body=%r", operation, result.status, result.body)
        else:
            self.logger.warning("%s failed: %s", operation, result.reason)
        return to_envelope(result, include_error_body=include_error_body)

    async def _request(self, method: str, path: str, **kwargs) -> Result:
        url = f"{self.base_url}{path}"
        try:
            resp = await asyncio.to_thread(
                self.session.request, method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            return TransportFailure(error=str(exc))

        data = _response_body(resp)
        if not 200 <= resp.status_code < 300:
            return BackendFailure(status=resp.status_code, body=data)
        return Success(status=resp.status_code, data=data)
