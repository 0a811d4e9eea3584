"""API Routes."""

import logging
from datetime import datetime
from typing import Annotated

from babel.dates import format_date
from fastapi import APIRouter, Depends, HTTPException, status

from ramadan_timer import __version__
from ramadan_timer.api.dependencies import AppState, get_app_state
from ramadan_timer.api.schemas import (
    ApiResponse,
    CurrentStateSchema,
    DayTimesSchema,
    LocationSchema,
    ManualLocationRequest,
    NotificationPreferencesSchema,
    ScheduledJobSchema,
    SettingsSchema,
    SettingsUpdateSchema,
    SystemStatusSchema,
)
from ramadan_timer.domain.errors import (
    InvalidInput,
    LocationTimeout,
    LocationUnavailable,
    NetworkError,
    ParseError,
    PermissionDenied,
    RamadanTimerError,
)
from ramadan_timer.domain.models import (
    RTL_LANGUAGES,
    CalculationMethod,
    DayRecord,
    Location,
    NotificationPreferences,
)
from ramadan_timer.services.selection import format_countdown

logger = logging.getLogger(__name__)

router = APIRouter()

BABEL_LOCALES = {"en": "en_US", "ar": "ar", "ur": "ur_PK", "hi": "hi_IN"}


def _http_error(error: RamadanTimerError) -> HTTPException:
    """Map an application error to an HTTP status."""
    if isinstance(error, PermissionDenied):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, InvalidInput):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, (NetworkError, ParseError)):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, LocationTimeout):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(error, LocationUnavailable):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))


def _location_schema(location: Location | None) -> LocationSchema | None:
    if location is None:
        return None
    return LocationSchema(
        latitude=location.latitude,
        longitude=location.longitude,
        city=location.city,
    )


def _day_schema(record: DayRecord, language: str) -> DayTimesSchema:
    return DayTimesSchema(
        date=record.date,
        sehri=record.sehri_time.strftime("%H:%M"),
        iftar=record.iftar_time.strftime("%H:%M"),
        gregorian_date=record.gregorian_date,
        hijri_date=record.hijri_for_language(language),
        method_name=record.method_name,
    )


def _settings_schema(state: AppState) -> SettingsSchema:
    s = state.timer_service.settings
    return SettingsSchema(
        location=_location_schema(s.location),
        location_permission_granted=s.location_permission_granted,
        language=s.language,
        calculation_method=s.calculation_method,
        hijri_adjustment=s.hijri_adjustment,
        notifications=NotificationPreferencesSchema(
            enabled=s.notifications.enabled,
            sehri_enabled=s.notifications.sehri_enabled,
            iftar_enabled=s.notifications.iftar_enabled,
            lead_minutes=s.notifications.lead_minutes,
        ),
    )


# ============== State & Status ==============


@router.get("/status", response_model=SystemStatusSchema)
async def get_status(state: Annotated[AppState, Depends(get_app_state)]) -> SystemStatusSchema:
    """System status."""
    uptime = datetime.now() - state.started_at
    jobs = state.scheduler_adapter.get_scheduled_jobs()

    return SystemStatusSchema(
        version=__version__,
        uptime=str(uptime).split(".")[0],
        scheduler_running=state.scheduler_adapter.running,
        scheduled_jobs_count=len(jobs),
        cached_days=len(state.timer_service.cache),
        pending_backfills=len(state.timer_service.selector.pending),
        last_refresh=state.last_refresh_at,
        last_notification=state.last_notification_at,
    )


@router.get("/current", response_model=CurrentStateSchema)
async def get_current_state(
    state: Annotated[AppState, Depends(get_app_state)],
) -> CurrentStateSchema:
    """Current countdown, selected day and dates."""
    language = state.timer_service.settings.language
    view = state.timer_service.view()

    return CurrentStateSchema(
        current_time=view.now.strftime("%H:%M:%S"),
        current_date=format_date(
            view.now, "EEEE, d MMMM yyyy", locale=BABEL_LOCALES.get(language, "en_US")
        ),
        location=_location_schema(view.location),
        has_times=view.has_times,
        is_next_day=view.is_next_day,
        active_period=view.active_period,
        sehri=view.sehri_time.strftime("%H:%M") if view.sehri_time else None,
        iftar=view.iftar_time.strftime("%H:%M") if view.iftar_time else None,
        target_time=view.target_time.strftime("%H:%M") if view.target_time else None,
        countdown=format_countdown(view.countdown),
        gregorian_date=view.gregorian_date,
        hijri_date=view.hijri_date,
        method_name=view.method_name,
        rtl=language in RTL_LANGUAGES,
    )


# ============== Prayer Times ==============


@router.get("/times", response_model=list[DayTimesSchema])
async def get_cached_times(
    state: Annotated[AppState, Depends(get_app_state)],
) -> list[DayTimesSchema]:
    """Cached days, oldest first."""
    language = state.timer_service.settings.language
    return [_day_schema(record, language) for record in state.timer_service.cache.all()]


@router.post("/refresh", response_model=ApiResponse)
async def refresh_times(state: Annotated[AppState, Depends(get_app_state)]) -> ApiResponse:
    """Refetch the cached window."""
    try:
        records = await state.timer_service.refresh()
    except RamadanTimerError as e:
        logger.error(f"Refresh failed: {e}")
        raise _http_error(e) from e

    return ApiResponse(
        success=True,
        message=f"{len(records)} days fetched.",
        data={"days": [record.date.isoformat() for record in records]},
    )


# ============== Settings ==============


@router.get("/settings", response_model=SettingsSchema)
async def get_settings(state: Annotated[AppState, Depends(get_app_state)]) -> SettingsSchema:
    """Current settings."""
    return _settings_schema(state)


@router.put("/settings", response_model=SettingsSchema)
async def update_settings(
    update: SettingsUpdateSchema,
    state: Annotated[AppState, Depends(get_app_state)],
) -> SettingsSchema:
    """Update settings (partial update)."""
    service = state.timer_service
    try:
        if update.language is not None:
            await service.set_language(update.language)
        if update.hijri_adjustment is not None:
            await service.set_hijri_adjustment(update.hijri_adjustment)
        if update.notifications is not None:
            await service.set_notification_preferences(
                NotificationPreferences(
                    enabled=update.notifications.enabled,
                    sehri_enabled=update.notifications.sehri_enabled,
                    iftar_enabled=update.notifications.iftar_enabled,
                    lead_minutes=update.notifications.lead_minutes,
                )
            )
        if update.calculation_method is not None:
            await service.set_calculation_method(update.calculation_method)
    except RamadanTimerError as e:
        raise _http_error(e) from e

    return _settings_schema(state)


# ============== Location ==============


@router.post("/location", response_model=SettingsSchema)
async def set_manual_location(
    request: ManualLocationRequest,
    state: Annotated[AppState, Depends(get_app_state)],
) -> SettingsSchema:
    """Use manually entered coordinates."""
    try:
        location = await state.location_service.set_manual_location(
            request.latitude, request.longitude
        )
        await state.timer_service.set_location(location)
    except RamadanTimerError as e:
        raise _http_error(e) from e

    return _settings_schema(state)


@router.post("/location/detect", response_model=SettingsSchema)
async def detect_location(
    state: Annotated[AppState, Depends(get_app_state)],
) -> SettingsSchema:
    """Ask the geolocation provider for the position."""
    result = await state.location_service.request_location()
    if not result.ok:
        raise _http_error(result.error)

    try:
        await state.timer_service.set_location(result.location)
    except RamadanTimerError as e:
        raise _http_error(e) from e

    return _settings_schema(state)


# ============== Notifications ==============


@router.get("/notifications/jobs", response_model=list[ScheduledJobSchema])
async def get_notification_jobs(
    state: Annotated[AppState, Depends(get_app_state)],
) -> list[ScheduledJobSchema]:
    """Armed notifications."""
    jobs = state.scheduler_adapter.get_scheduled_jobs()
    return [
        ScheduledJobSchema(
            job_id=job_id,
            run_time=run_time.strftime("%Y-%m-%d %H:%M:%S"),
            kind=job_id.split("_")[1],
        )
        for job_id, run_time in jobs
        if job_id.startswith("notify_")
    ]


# ============== Utility ==============


@router.get("/methods")
async def get_calculation_methods() -> list[dict[str, str | int]]:
    """Supported calculation methods."""
    return [
        {"value": m.value, "display_name": m.display_name, "method_id": m.method_id}
        for m in CalculationMethod
    ]
