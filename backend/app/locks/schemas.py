from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional


class LockOut(BaseModel):
    """Lock body as the editor sees it: {isLocked, lockedBy, lockedByName, lockedAt, ...}"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_locked: bool
    locked_by: Optional[str] = None
    locked_by_name: Optional[str] = None
    locked_at: Optional[datetime] = None
    renewed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    expires_in_sec: Optional[int] = None
    # False when the lock store could not be read; the editor carries on without lock info
    available: bool = True


class LockReleaseOut(BaseModel):
    released: bool
