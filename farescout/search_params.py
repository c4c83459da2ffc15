from __future__ import annotations

from datetime import date
from typing import Any, List, Literal, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .airports import Airport, select_destinations
from .models import TimeWindow

MAX_DESTINATIONS = 5
MAX_TRIP_DURATION = 365

P = TypeVar("P", bound=BaseModel)


class SearchValidationError(ValueError):
    """Request body rejected before any search work starts."""


class SearchParams(BaseModel):
    """Round-trip search request as posted by the UI (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    search_mode: Literal["specific", "flexible"] = Field(
        "specific", alias="searchMode"
    )
    trip_duration: Optional[int] = Field(
        None, alias="tripDuration", gt=0, le=MAX_TRIP_DURATION
    )
    departure_date: Optional[date] = Field(None, alias="departureDate")
    return_date: Optional[date] = Field(None, alias="returnDate")
    destination_codes: List[str] = Field(
        default_factory=list, alias="destinationCodes"
    )
    departure_time_start: int = Field(0, alias="departureTimeStart", ge=0, le=23)
    departure_time_end: int = Field(23, alias="departureTimeEnd", ge=0, le=23)
    return_time_start: int = Field(0, alias="returnTimeStart", ge=0, le=23)
    return_time_end: int = Field(23, alias="returnTimeEnd", ge=0, le=23)
    nonstop_only: bool = Field(True, alias="nonstopOnly")
    max_results: int = Field(100, alias="maxResults", ge=1)

    @model_validator(mode="after")
    def _check_request(self) -> "SearchParams":
        if self.search_mode == "specific" and (
            not self.departure_date or not self.return_date
        ):
            raise ValueError(
                "Departure and return dates are required for specific search"
            )
        if self.search_mode == "flexible" and not self.trip_duration:
            raise ValueError("Trip duration is required for flexible search")
        if not self.destination_codes:
            raise ValueError("At least one destination is required")
        if len(self.destination_codes) > MAX_DESTINATIONS:
            raise ValueError(
                f"Maximum {MAX_DESTINATIONS} destinations allowed"
            )
        try:
            select_destinations(self.destination_codes)
        except KeyError as exc:
            raise ValueError(f"Unknown destination code(s): {exc.args[0]}")
        return self

    @property
    def departure_window(self) -> TimeWindow:
        return TimeWindow(self.departure_time_start, self.departure_time_end)

    @property
    def return_window(self) -> TimeWindow:
        return TimeWindow(self.return_time_start, self.return_time_end)

    def destinations(self) -> List[Airport]:
        return select_destinations(self.destination_codes)

    def echo(self) -> dict:
        """Parameters echoed back in the ``complete`` event."""
        data: dict = {"searchMode": self.search_mode}
        if self.search_mode == "flexible":
            data["tripDuration"] = self.trip_duration
        else:
            data["departureDate"] = self.departure_date.isoformat()
            data["returnDate"] = self.return_date.isoformat()
        data.update(
            departureTimeStart=self.departure_time_start,
            departureTimeEnd=self.departure_time_end,
            returnTimeStart=self.return_time_start,
            returnTimeEnd=self.return_time_end,
            nonstopOnly=self.nonstop_only,
        )
        return data


class MixMatchParams(SearchParams):
    """Mix-and-match request; connecting legs are allowed by default."""

    nonstop_only: bool = Field(False, alias="nonstopOnly")


class _LegacyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class SingleSearchRequest(_LegacyRequest):
    destination_code: str = Field(..., alias="destinationCode", min_length=3)
    outbound_date: date = Field(..., alias="outboundDate")
    inbound_date: date = Field(..., alias="inboundDate")


class AllDestinationsRequest(_LegacyRequest):
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    max_price: Optional[float] = Field(None, alias="maxPrice", gt=0)
    direct_only: bool = Field(False, alias="directOnly")


class DateRangeRequest(_LegacyRequest):
    destination_code: str = Field(..., alias="destinationCode", min_length=3)
    days_ahead: int = Field(90, alias="daysAhead", ge=1, le=330)
    trip_length_min: int = Field(3, alias="tripLengthMin", ge=1)
    trip_length_max: int = Field(7, alias="tripLengthMax", ge=1)
    nonstop_only: bool = Field(True, alias="nonstopOnly")

    @model_validator(mode="after")
    def _check_lengths(self) -> "DateRangeRequest":
        if self.trip_length_min > self.trip_length_max:
            raise ValueError("tripLengthMin must not exceed tripLengthMax")
        return self

    def echo(self) -> dict:
        return {
            "destinationCode": self.destination_code,
            "daysAhead": self.days_ahead,
            "tripLengthMin": self.trip_length_min,
            "tripLengthMax": self.trip_length_max,
            "nonstopOnly": self.nonstop_only,
        }


def describe_validation_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    ctx_error = (err.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def parse_params(model: Type[P], body: Any) -> P:
    """Validate *body* into *model*, raising :class:`SearchValidationError`."""
    if not isinstance(body, Mapping):
        raise SearchValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise SearchValidationError(describe_validation_error(exc)) from exc


__all__ = [
    "MAX_DESTINATIONS",
    "SearchParams",
    "MixMatchParams",
    "SingleSearchRequest",
    "AllDestinationsRequest",
    "DateRangeRequest",
    "SearchValidationError",
    "describe_validation_error",
    "parse_params",
]
