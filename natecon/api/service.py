"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions and their CPU game loops
3. Redacts state for the requesting seat
4. Formats responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    SubmitMoveRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    MoveResponse,
    LegalMovesResponse,
    ScoresResponse,
    # Shared
    BuildingInfo,
    CardInfo,
    MoveInfo,
    PlayerInfo,
    ScoreInfo,
    WorkplaceInfo,
    # Enums
    SessionStatus,
)
from ..engine_core.action import Move, MovePayload
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.catalog import CardCatalog
from ..engine_core.scoring import PlayerScore, calculate_scores
from ..engine_core.state import Card, Phase
from ..engine_core.view import HIDDEN, player_view
from ..session import (
    GameLoop,
    Session,
    SessionManager,
    SessionState,
    pending_seats,
)

logger = logging.getLogger(__name__)

# Most recent log lines returned with a state
LOG_TAIL = 50


class MoveRejectedError(ValueError):
    """The rules (or the seat assignment) reject a submitted move."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class GameOverError(RuntimeError):
    """A move was submitted to a finished game."""


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Create session (CPU seats that act first run immediately)
        session_response = service.create_session(request)

        # Submit a human move (CPU seats run afterwards)
        move_response = service.submit_move(session_id, move_request)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    @property
    def catalog(self) -> CardCatalog:
        return self.session_manager.catalog

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Create a new game session.

        Raises ValueError for seats outside the table and
        SessionLimitError when the host is full.
        """
        session = self.session_manager.create_session(
            num_players=request.num_players,
            cpu_seats=request.cpu_seats,
            version=request.version,
            difficulty=request.difficulty,
            seed=request.seed,
        )
        loop = GameLoop(session)
        self._game_loops[session.session_id] = loop
        loop.run_cpu_turns()
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse:
        """Get session status. Raises SessionNotFoundError."""
        return self._session_to_response(self.session_manager.require_session(session_id))

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        """End a session. Raises SessionNotFoundError."""
        self.session_manager.end_session(session_id, reason)
        self._game_loops.pop(session_id, None)
        return True

    def list_sessions(self) -> list[str]:
        """List active session IDs."""
        return self.session_manager.list_active_sessions()

    def get_game_state(self, session_id: str, player_id: int | None = None) -> GameStateResponse:
        """The game as seen by `player_id` (None for a spectator)."""
        session = self.session_manager.require_session(session_id)
        with session.lock:
            view = player_view(session.game_state, player_id)

        dos = view.design_office_state
        return GameStateResponse(
            session_id=session_id,
            viewer_id=player_id,
            version=view.version,
            round=view.round,
            phase=view.phase.value,
            start_player=view.start_player,
            current_player=view.current_player,
            household=view.household,
            deck_size=len(view.deck),
            discard_size=len(view.discard),
            players=[
                PlayerInfo(
                    player_id=pid,
                    is_cpu=session.is_cpu(pid),
                    money=p.money,
                    workers=p.workers,
                    available_workers=p.available_workers,
                    max_workers=p.max_workers,
                    robot_workers=p.robot_workers,
                    unpaid_debts=p.unpaid_debts,
                    vp_tokens=p.vp_tokens,
                    hand_size=len(p.hand),
                    hand=[self._card_info(c) for c in p.hand],
                    buildings=[
                        BuildingInfo(card=self._card_info(slot.card), worker_placed=slot.worker_placed)
                        for slot in p.buildings
                    ],
                )
                for pid, p in sorted(view.players.items())
            ],
            public_workplaces=[
                WorkplaceInfo(
                    id=wp.id,
                    name=wp.name,
                    effect_text=wp.effect_text,
                    multiple_allowed=wp.multiple_allowed,
                    workers=list(wp.workers),
                    from_building_def_id=wp.from_building_def_id,
                )
                for wp in view.public_workplaces
            ],
            waiting_on=pending_seats(view),
            revealed_cards=[self._card_info(c) for c in dos.revealed_cards] if dos else [],
            log=[entry.text for entry in view.log[-LOG_TAIL:]],
            final_scores=[self._score_info(s) for s in view.final_scores] if view.final_scores else None,
        )

    def submit_move(self, session_id: str, request: SubmitMoveRequest) -> MoveResponse:
        """
        Apply a human move, then run the CPU seats.

        Raises SessionNotFoundError, GameOverError or MoveRejectedError.
        """
        session = self.session_manager.require_session(session_id)
        loop = self._game_loops.setdefault(session_id, GameLoop(session))

        with session.lock:
            if session.game_state.phase == Phase.GAME_END:
                raise GameOverError(f"Session {session_id} has finished")
            if session.is_cpu(request.player_id):
                raise MoveRejectedError(f"Seat {request.player_id} is played by the CPU")

            move = Move(
                move_type=request.move_type,
                payload=MovePayload(
                    player_id=request.player_id,
                    workplace_id=request.workplace_id,
                    card_uid=request.card_uid,
                    index=request.index,
                    option=request.option,
                ),
            )
            result = session.submit_move(move)
            if not result.success:
                raise MoveRejectedError(result.error or "Move rejected")

            turn = loop.run_cpu_turns()
            state = session.game_state
            return MoveResponse(
                success=True,
                session_id=session_id,
                changes=result.state_changes,
                cpu_actions=turn.cpu_actions,
                waiting_on=turn.waiting_on,
                round=state.round,
                phase=state.phase.value,
                game_over=state.phase == Phase.GAME_END,
            )

    def legal_moves(self, session_id: str, player_id: int) -> LegalMovesResponse:
        """Every move the rules accept from `player_id` right now."""
        session = self.session_manager.require_session(session_id)
        with session.lock:
            moves = ActionGenerator(self.catalog).generate(session.game_state, player_id)
        return LegalMovesResponse(
            session_id=session_id,
            player_id=player_id,
            moves=[
                MoveInfo(
                    move_type=m.move_type,
                    player_id=m.player_id,
                    workplace_id=m.payload.workplace_id,
                    card_uid=m.payload.card_uid,
                    index=m.payload.index,
                    option=m.payload.option,
                    description=m.describe(),
                )
                for m in moves
            ],
        )

    def get_scores(self, session_id: str) -> ScoresResponse:
        """Final ranking once the game ended, the running totals before."""
        session = self.session_manager.require_session(session_id)
        with session.lock:
            state = session.game_state
            final = state.final_scores is not None
            scores = state.final_scores if final else calculate_scores(self.catalog, state)
        return ScoresResponse(
            session_id=session_id,
            final=final,
            scores=[self._score_info(s) for s in scores],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.game_state
        waiting_on = pending_seats(state)
        return SessionResponse(
            session_id=session.session_id,
            status=self._session_status(session, waiting_on),
            num_players=state.num_players,
            version=state.version,
            difficulty=session.difficulty,
            cpu_seats=sorted(session.cpu_bots),
            human_seats=session.human_seats,
            round=state.round,
            phase=state.phase.value,
            waiting_on=waiting_on,
            created_at=session.created_at,
        )

    def _session_status(self, session: Session, waiting_on: list[int]) -> SessionStatus:
        if session.state == SessionState.ABANDONED:
            return SessionStatus.ABANDONED
        if session.state == SessionState.GAME_OVER:
            return SessionStatus.GAME_OVER
        if any(not session.is_cpu(pid) for pid in waiting_on):
            return SessionStatus.YOUR_TURN
        return SessionStatus.WAITING

    def _card_info(self, card: Card) -> CardInfo:
        if card.def_id == HIDDEN:
            return CardInfo(uid=card.uid, def_id=HIDDEN, name=HIDDEN)
        card_def = self.catalog.lookup(card.def_id)
        return CardInfo(
            uid=card.uid,
            def_id=card.def_id,
            name=card_def.name,
            cost=None if card.is_consumable else card_def.cost,
            vp=None if card.is_consumable else card_def.vp,
        )

    def _score_info(self, score: PlayerScore) -> ScoreInfo:
        b = score.breakdown
        return ScoreInfo(
            player_id=score.player_id,
            score=score.score,
            building_vp=b.building_vp,
            money_vp=b.money_vp,
            debt_vp=b.debt_vp,
            bonus_vp=b.bonus_vp,
            token_vp=b.token_vp,
            exempted_debts=b.exempted_debts,
        )
