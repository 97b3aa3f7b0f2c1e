import enum
import secrets
import string
from datetime import datetime
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.orm import Session
from . import models as m

QUOTE_ID_PREFIX = "TRE_QT"
_CODE_CHARS = string.ascii_uppercase + string.digits


def generate_quote_id(now: datetime | None = None) -> str:
    """TRE_QT_YYMMDD_XXXX with a random 4-character alphanumeric suffix."""
    now = now or datetime.now()
    code = "".join(secrets.choice(_CODE_CHARS) for _ in range(4))
    return f"{QUOTE_ID_PREFIX}_{now:%y%m%d}_{code}"


def unique_quote_id(db: Session, attempts: int = 10) -> str:
    for _ in range(attempts):
        qid = generate_quote_id()
        if not db.scalar(select(m.Quotation.id).where(m.Quotation.quote_id == qid)):
            return qid
    raise RuntimeError("could not allocate a unique quote id")


SNAPSHOT_FIELDS = (
    "quote_id",
    "project_name",
    "project_type",
    "client_name",
    "client_email",
    "client_phone",
    "project_address",
    "build_type",
    "status",
    "discount_type",
    "discount_value",
)


def snapshot(q: m.Quotation) -> dict:
    """JSON-friendly view of the editable fields, for the audit trail."""
    out = {}
    for f in SNAPSHOT_FIELDS:
        v = getattr(q, f)
        if isinstance(v, enum.Enum):
            v = v.value
        elif isinstance(v, Decimal):
            v = str(v)
        out[f] = v
    return out
