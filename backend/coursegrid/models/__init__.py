from coursegrid.models.conflict import ConflictInfo  # noqa: F401
from coursegrid.models.planning import (  # noqa: F401
    Combination,
    Plan,
    PlanDiff,
    PlannerResult,
    Score,
)
from coursegrid.models.registration import Registration  # noqa: F401
from coursegrid.models.session import (  # noqa: F401
    Catalog,
    Course,
    Group,
    Session,
    SessionKey,
    SessionKind,
    SlotRange,
    UnschedulableSession,
    normalize_kind,
)
from coursegrid.models.track import AppliedSession, OverridePatch, Track, TrackKind  # noqa: F401
