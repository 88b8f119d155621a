from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from little_wars.config import settings
from little_wars.core.engine import GameEngine, create_engine, create_local_provider, multiplier_tables_for
from little_wars.core.logger import get_logger
from little_wars.core.sessions import EngineRegistry
from little_wars.core.types import GameSnapshot, SpinOutcome

# Rate limiting setup
try:
    from slowapi import Limiter
    from slowapi.util import get_remote_address
    limiter = Limiter(key_func=get_remote_address)
    RATE_LIMIT_AVAILABLE = True
except ImportError:
    RATE_LIMIT_AVAILABLE = False
    limiter = None

logger = get_logger("api")

router = APIRouter()

SESSION_COOKIE = "session_id"

# One engine per session; the game routes never touch another session's engine
registry = EngineRegistry(
    lambda: create_engine(settings),
    ttl_seconds=settings.server.session_ttl_seconds,
)

# The external resolver endpoint always resolves locally
rgs_provider = create_local_provider(settings)


# ==================== Request Models ====================

class BetRequest(BaseModel):
    bet: float = Field(gt=0)


# ==================== Helpers ====================

def get_session_id(request: Request, response: Response) -> str:
    """Session id from cookie, issuing a new one when missing."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        session_id = EngineRegistry.new_session_id()
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return session_id


def get_rate_limit():
    """Get rate limit string for spins and round starts."""
    return settings.rate_limit.game_requests if settings.rate_limit.enabled else "1000/minute"


def get_api_rate_limit():
    """Get rate limit string for read and bet requests."""
    return settings.rate_limit.api_requests if settings.rate_limit.enabled else "1000/minute"


def rate_limited(limit=get_rate_limit):
    def decorator(func):
        if RATE_LIMIT_AVAILABLE:
            return limiter.limit(limit)(func)
        return func
    return decorator


# ==================== Game Endpoints ====================
# Plain def: FastAPI runs these in its threadpool, so a remote resolver call
# blocks only its own worker and the session lock serializes per session.

@router.get("/state", response_model=GameSnapshot)
@rate_limited(get_api_rate_limit)
def get_state(request: Request, response: Response):
    with registry.session(get_session_id(request, response)) as engine:
        return engine.get_state()


@router.post("/bet", response_model=GameSnapshot)
@rate_limited(get_api_rate_limit)
def set_bet(request: Request, response: Response, data: BetRequest):
    with registry.session(get_session_id(request, response)) as engine:
        return engine.set_bet(data.bet)


@router.post("/round/start", response_model=GameSnapshot)
@rate_limited()
def start_round(request: Request, response: Response):
    with registry.session(get_session_id(request, response)) as engine:
        return engine.start_round()


@router.post("/spin", response_model=GameSnapshot)
@rate_limited()
def spin(request: Request, response: Response):
    session_id = get_session_id(request, response)
    with registry.session(session_id) as engine:
        snapshot = engine.spin()
    if snapshot.spin_win > 0:
        logger.info(f"Spin win {snapshot.spin_win} for session {session_id[:8]}")
    return snapshot


# ==================== External Resolver ====================

@router.post("/rgs/spin", response_model=SpinOutcome)
def rgs_spin(snapshot: GameSnapshot):
    """
    Resolve one spin for a remote engine.

    The snapshot is the caller's state with the spin already taken from the
    budget; the reply carries the resolution plus the round fields this side
    computed, so the caller can check it applied identical rules.
    """
    engine = GameEngine.from_snapshot(
        snapshot,
        settings.game,
        rgs_provider,
        multiplier_tables=multiplier_tables_for(settings),
    )
    outcome = rgs_provider.get_spin(snapshot)
    engine.apply_outcome(outcome)
    return SpinOutcome(resolution=outcome.resolution, round=engine.round_fields())
