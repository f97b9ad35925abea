import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from pydantic import AwareDatetime, BaseModel, Field, StrictInt, StrictStr

from studydeck.consts import VERSION
from studydeck.domain.review.errors import CardNotFound, SchedulingError
from studydeck.domain.review.models import (
    CardMemoryState,
    QualityRating,
    ReviewEvent,
    SessionMode,
    require_instant,
)

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("studydeck.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"studydeck server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("studydeck server shutting down...")


app = FastAPI(
    title="studydeck server",
    description="Spaced-repetition scheduling for flashcard study sessions.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()

_service = None


def get_review_service():
    """Process-wide ReviewService backed by the in-memory repository."""
    global _service
    if _service is None:
        from studydeck.application.config import resolve_config
        from studydeck.application.review.scheduler import ReviewScheduler
        from studydeck.application.review.service import ReviewService
        from studydeck.infrastructure.memory_store import InMemoryCardRepository

        config = resolve_config()
        _service = ReviewService(
            InMemoryCardRepository(),
            ReviewScheduler(config.scheduler_settings()),
            review_xp=config.review_xp,
        )
    return _service


def _now(value: datetime | None) -> datetime:
    return value if value is not None else datetime.now(timezone.utc)


def _parse_quality(value: int | str) -> QualityRating:
    try:
        return QualityRating.parse(value)
    except SchedulingError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class CardStateModel(BaseModel):
    interval: int
    ease_factor: float
    repetitions: int
    next_review: AwareDatetime

    @classmethod
    def from_state(cls, state: CardMemoryState) -> "CardStateModel":
        return cls(
            interval=state.interval,
            ease_factor=state.ease_factor,
            repetitions=state.repetitions,
            next_review=state.next_review,
        )

    def to_state(self) -> CardMemoryState:
        return CardMemoryState(
            interval=self.interval,
            ease_factor=self.ease_factor,
            repetitions=self.repetitions,
            next_review=self.next_review,
        )


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ScheduleRequest(BaseModel):
    state: CardStateModel
    quality: StrictInt | StrictStr
    now: AwareDatetime | None = None
    client_offset_minutes: int = 0


class ScheduleResponse(BaseModel):
    state: CardStateModel
    status: str
    due_label: str


class ClassifyRequest(BaseModel):
    state: CardStateModel
    now: AwareDatetime | None = None


class ClassifyResponse(BaseModel):
    status: str
    label: str


class SessionCard(BaseModel):
    id: str
    state: CardStateModel


class SessionRequest(BaseModel):
    cards: list[SessionCard]
    mode: SessionMode = SessionMode.DUE
    now: AwareDatetime | None = None
    limit: int | None = Field(default=None, ge=0)


class SessionResponse(BaseModel):
    card_ids: list[str]
    remaining_due: int


class CreateCardRequest(BaseModel):
    card_id: str | None = None
    now: AwareDatetime | None = None


class CardResponse(BaseModel):
    card_id: str
    state: CardStateModel
    status: str
    version: int


class ReviewRequest(BaseModel):
    quality: StrictInt | StrictStr
    reviewed_at: AwareDatetime | None = None
    client_offset_minutes: int = 0


class ReviewResponse(BaseModel):
    card_id: str
    state: CardStateModel
    status: str
    due_label: str
    xp_earned: int
    version: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/schedule", response_model=ScheduleResponse)
async def schedule(req: ScheduleRequest):
    """
    Stateless scheduling: apply one rating to a state supplied by the caller.
    """
    from studydeck.application.review.classifier import classify
    from studydeck.application.review.day_boundary import due_label

    quality = _parse_quality(req.quality)
    service = get_review_service()
    now = _now(req.now)
    try:
        new_state = service.scheduler.apply(req.state.to_state(), quality, now)
        label = due_label(new_state.next_review, now, req.client_offset_minutes)
    except SchedulingError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    return ScheduleResponse(
        state=CardStateModel.from_state(new_state),
        status=classify(new_state, now, service.mastery_threshold).value,
        due_label=label,
    )


@app.post("/classify", response_model=ClassifyResponse)
async def classify_card(req: ClassifyRequest):
    from studydeck.application.review.classifier import classify

    status = classify(req.state.to_state(), _now(req.now), get_review_service().mastery_threshold)
    return ClassifyResponse(status=status.value, label=status.label)


@app.post("/session", response_model=SessionResponse)
async def build_session(req: SessionRequest):
    """Order a caller-supplied set of cards into a study queue."""
    from studydeck.application.review.session import remaining_due, select_for_session

    now = _now(req.now)
    cards = [(card.id, card.state.to_state()) for card in req.cards]
    queue = select_for_session(
        cards, now, req.mode, req.limit, get_review_service().mastery_threshold
    )
    return SessionResponse(card_ids=queue, remaining_due=remaining_due(cards, now))


@app.post("/cards", response_model=CardResponse, status_code=201)
async def create_card(req: CreateCardRequest):
    from studydeck.application.review.classifier import classify
    from studydeck.infrastructure.deck_file import new_card_id

    service = get_review_service()
    now = _now(req.now)
    try:
        stored = await service.create_card(req.card_id or new_card_id(), now)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None

    return CardResponse(
        card_id=stored.card_id,
        state=CardStateModel.from_state(stored.state),
        status=classify(stored.state, now, service.mastery_threshold).value,
        version=stored.version,
    )


@app.get("/cards/{card_id}", response_model=CardResponse)
async def get_card(card_id: str, now: datetime | None = None):
    from studydeck.application.review.classifier import classify

    service = get_review_service()
    try:
        stored = await service.get_card(card_id)
        if now is not None:
            require_instant(now)
    except CardNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except SchedulingError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    return CardResponse(
        card_id=stored.card_id,
        state=CardStateModel.from_state(stored.state),
        status=classify(stored.state, _now(now), service.mastery_threshold).value,
        version=stored.version,
    )


@app.post("/cards/{card_id}/review", response_model=ReviewResponse)
async def review_card(card_id: str, req: ReviewRequest):
    """
    Apply a review to a stored card and persist the result.
    """
    quality = _parse_quality(req.quality)
    event = ReviewEvent(
        card_id=card_id,
        quality=quality,
        reviewed_at=_now(req.reviewed_at),
        client_offset_minutes=req.client_offset_minutes,
    )
    logger.info(f"Review requested via API: {card_id} {quality.label}")

    try:
        outcome = await get_review_service().submit(event)
    except CardNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except SchedulingError as e:
        logger.error(f"Review failed: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from None

    return ReviewResponse(
        card_id=outcome.card_id,
        state=CardStateModel.from_state(outcome.state),
        status=outcome.status.value,
        due_label=outcome.due_label,
        xp_earned=outcome.xp_earned,
        version=outcome.version,
    )
