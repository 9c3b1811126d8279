"""
HTTP client for the Aurora Voyages REST API.

`ApiClient` is the thin transport (base URL, auth header, timeout, error
translation); `BookingGateway` is the typed set of calls the booking flows use.
"""

import logging
from typing import Any, Optional

import httpx

import config
from auth_context import AuthSession
from booking_schemas import Booking, BookingCreate, Destination, PaymentUpdate, VacationPackage

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timed out. The server might be down or unreachable."


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RequestTimeoutError(ApiError):
    def __init__(self):
        super().__init__(TIMEOUT_MESSAGE)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail:
            return detail if isinstance(detail, str) else str(detail)
    return response.reason_phrase or f"HTTP {response.status_code}"


class ApiClient:
    """
    Sends JSON requests with the session's `x-auth-token` header.
    Every request has a fixed timeout and is never retried.
    An injected `client` (e.g. a FastAPI TestClient) replaces the default httpx.Client.
    """

    def __init__(
        self,
        session: Optional[AuthSession] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.session = session or AuthSession()
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self._client = client or httpx.Client(
            timeout=timeout or config.API_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def request(self, method: str, path: str, json: Any = None, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        headers = self.session.headers()
        if not headers:
            logger.warning(f"No auth token for API {method} {url}")
        logger.debug(f"API {method}: {url}")

        try:
            response = self._client.request(method, url, json=json, params=params, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"API {method} {url} timed out")
            raise RequestTimeoutError() from e
        except httpx.RequestError as e:
            logger.error(f"API {method} {url} got no response: {type(e).__name__}: {e}")
            raise ApiError(f"No response received from server: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.error(f"API {method} {url} failed with {response.status_code}: {message}")
            if response.status_code == 401:
                # expired or revoked token
                self.session.logout()
            raise ApiError(message, status_code=response.status_code)

        logger.debug(f"API response {response.status_code} for {url}")
        if not response.content:
            return None
        return response.json()

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)


class BookingGateway:
    """REST calls used by the checkout and booking-form flows."""

    def __init__(self, api: ApiClient):
        self.api = api

    def get_vacation(self, package_id: int) -> VacationPackage:
        return VacationPackage.model_validate(self.api.get(f"/vacations/{package_id}"))

    def get_destination(self, destination_id: int) -> Destination:
        return Destination.model_validate(self.api.get(f"/destinations/{destination_id}"))

    def create_booking(self, payload: BookingCreate) -> Booking:
        body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        return Booking.model_validate(self.api.post("/bookings", body))

    def update_booking_payment(self, booking_id: int, update: PaymentUpdate) -> None:
        self.api.put(f"/bookings/{booking_id}/payment", update.model_dump(mode="json", by_alias=True))

    def get_booking(self, booking_id: int) -> Booking:
        return Booking.model_validate(self.api.get(f"/bookings/{booking_id}"))

    def create_payment_intent(self, amount: float, booking_data: dict, currency: Optional[str] = None) -> str:
        """Returns the client secret of a new payment intent."""
        return self.api.post("/payments/create-payment-intent", {
            "amount": amount,
            "currency": currency or config.PAYMENT_CURRENCY,
            "bookingData": booking_data,
        })
