import logging
from datetime import date
from typing import Callable, Dict, List, Optional

import requests
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.models.holiday import HolidaySource, HolidayType
from backoffice.services.audit import AuditService
from backoffice.services.calendar_store import CalendarStore

logger = logging.getLogger(__name__)

CALENDARIFIC_URL = "https://calendarific.com/api/v2/holidays"


def fetch_public_holidays(year: int, country: Optional[str] = None) -> List[Dict[str, object]]:
    """
    Fetch the public holidays of a year from Calendarific.

    Args:
        year: Calendar year to fetch
        country: ISO country code (defaults to HOLIDAY_COUNTRY)

    Returns:
        list: ``{"title": str, "date": date}`` entries

    Raises:
        ValueError: If the API key is not configured.
        requests.RequestException: If the API call fails or times out.
    """
    api_key = settings.holiday_sync.api_key
    if not api_key:
        raise ValueError("CALENDARIFIC_API_KEY is not configured. Set it in the environment.")

    params = {
        "api_key": api_key,
        "country": country or settings.holiday_sync.country,
        "year": year,
    }
    response = requests.get(CALENDARIFIC_URL, params=params, timeout=settings.holiday_sync.timeout_seconds)
    response.raise_for_status()

    holidays = []
    for item in response.json()["response"]["holidays"]:
        # "iso" may carry a time part for observances
        iso = item["date"]["iso"][:10]
        holidays.append({"title": item["name"], "date": date.fromisoformat(iso)})
    return holidays


def sync_holidays(
    db: Session,
    year: Optional[int] = None,
    fetcher: Optional[Callable[[int], List[Dict[str, object]]]] = None
) -> Dict[str, object]:
    """
    Import a year's government holidays once. A year that already has AUTO
    holidays is left alone; admin-entered holidays are never touched.
    """
    year = year or date.today().year
    fetcher = fetcher or fetch_public_holidays
    store = CalendarStore(db)
    audit = AuditService(db)

    if store.has_synced_holidays(year):
        logger.info(f"Holidays for {year} already synced; skipping")
        return {"year": year, "status": "skipped", "created": 0}

    try:
        fetched = fetcher(year)
    except (requests.RequestException, ValueError, KeyError) as e:
        logger.error(f"Holiday sync failed for {year}: {e}")
        audit.log_operational_event("holiday_sync", "failed", {"year": year, "error": str(e)})
        db.commit()
        return {"year": year, "status": "failed", "created": 0, "error": str(e)}

    created = 0
    seen = set()
    for item in fetched:
        key = (item["date"], item["title"])
        # Calendarific lists some holidays once per observance type
        if key in seen:
            continue
        seen.add(key)
        store.add_holiday(
            title=item["title"],
            day=item["date"],
            holiday_type=HolidayType.GOVT,
            source=HolidaySource.AUTO,
            commit=False
        )
        created += 1

    audit.log_operational_event("holiday_sync", "success", {"year": year, "created": created})
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Holidays synced for year {year}: {created} created")
    return {"year": year, "status": "synced", "created": created}
