import csv
import io
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import ValidationError
from ..db.session import get_db
from ..schemas.common import ReadingOut
from ..services import timeseries
from ..services.gateway import OperatorIdentity
from .deps import require_operator

router = APIRouter(prefix="/api", tags=["readings"])


def _window(device_id: Optional[str], limit: Optional[int], default_limit: int, max_limit: int) -> tuple[str, int]:
    if not device_id:
        raise ValidationError("device_id required")
    if limit is None:
        limit = default_limit
    elif limit < 1:
        raise ValidationError("limit must be >= 1")
    # above the cap is truncated, not rejected
    return device_id, min(limit, max_limit)


@router.get("/readings", response_model=List[ReadingOut])
def query_readings(
    device_id: Optional[str] = None,
    start: Optional[datetime] = Query(default=None, alias="from"),
    end: Optional[datetime] = Query(default=None, alias="to"),
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    _: OperatorIdentity = Depends(require_operator),
):
    device_id, limit = _window(device_id, limit, settings.READINGS_DEFAULT_LIMIT, settings.READINGS_MAX_LIMIT)
    return timeseries.range_query(db, device_id, start, end, limit)


@router.get("/readings.csv")
def export_readings(
    device_id: Optional[str] = None,
    start: Optional[datetime] = Query(default=None, alias="from"),
    end: Optional[datetime] = Query(default=None, alias="to"),
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    _: OperatorIdentity = Depends(require_operator),
):
    device_id, limit = _window(device_id, limit, settings.EXPORT_DEFAULT_LIMIT, settings.EXPORT_DEFAULT_LIMIT)
    rows = timeseries.range_query(db, device_id, start, end, limit)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(timeseries.export_rows(rows))
    return Response(
        content=buf.getvalue(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{device_id}_readings.csv"'},
    )
