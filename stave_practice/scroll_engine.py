"""Per-frame scrolling of target notes across the stave."""

import time
from typing import Callable, List, Tuple

from .core.config import PracticeConfig
from .core.interfaces import RenderItem
from .game_session import GameSession
from .logger import get_logger
from .note_types import ActiveNote, StaveGeometry

# Get logger for this module
logger = get_logger(__name__)

STYLE_PLAYED = "played"
STYLE_TARGET = "target"
STYLE_PENDING = "pending"


class ScrollEngine:
    """Moves, spawns, targets and retires notes once per display frame.

    Notes spawn at the stave's left edge and travel right. The target line
    sits one third of the way across the stave; a note is judged while it is
    inside the activation band around that line.
    """

    def __init__(
        self,
        config: PracticeConfig,
        geometry: StaveGeometry,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._speed = config.scroll_speed
        self._spacing = config.note_spacing
        self._band = config.activation_band_px
        self._exit_margin = config.exit_margin_px
        self._geometry = geometry
        self._clock = clock
        self.check_spacing()

    @property
    def spawn_x(self) -> float:
        return self._geometry.origin_x

    @property
    def target_x(self) -> float:
        return self._geometry.origin_x + self._geometry.width / 3

    def band(self) -> Tuple[float, float]:
        """Near and far edge of the activation band."""
        return self.target_x - self._band, self.target_x + self._band

    @property
    def visible_limit(self) -> float:
        return self._geometry.origin_x + self._geometry.width + self._exit_margin

    def check_spacing(self) -> bool:
        """Warn when the constants allow two notes in the band or skip it entirely.

        Returns:
            True if at most one note can be inside the band and every note
            spends at least one frame in it
        """
        ok = True
        if self._spacing <= 2 * self._band:
            logger.warning(
                f"Note spacing {self._spacing}px fits more than one note in the "
                f"{2 * self._band}px activation band; targets will queue by entry order"
            )
            ok = False
        if self._speed > 2 * self._band:
            logger.warning(
                f"Scroll speed {self._speed}px/frame can jump over the "
                f"{2 * self._band}px activation band"
            )
            ok = False
        return ok

    def tick(self, session: GameSession) -> None:
        """Advance the session by one frame."""
        if not session.is_running:
            return

        # Feedback from the previous frame is cleared once nothing is targeted
        if session.target is None and session.feedback:
            session.feedback = ""

        for active in session.active_notes:
            active.advance(self._speed)

        self._activate(session)
        self._release_target(session)
        self._retire_exited(session)

        if session.sequence.has_next():
            self._maybe_spawn(session)
        elif not session.active_notes:
            session.finish()

    def _activate(self, session: GameSession) -> None:
        if session.target is not None:
            return

        near, far = self.band()
        for active in session.active_notes:
            if not active.played and near <= active.position <= far:
                active.activated_at = self._clock()
                session.target = active
                logger.debug(f"Target: {active.pitch_key} at x={active.position:.0f}")
                return

    def _release_target(self, session: GameSession) -> None:
        target = session.target
        if target is None:
            return

        _, far = self.band()
        if target.position <= far:
            return

        if not target.played:
            session.feedback = f"Missed {target.pitch_key.upper()}!"
            session.missed += 1
            logger.info(f"Missed {target.pitch_key}")
        session.target = None

    def _retire_exited(self, session: GameSession) -> None:
        limit = self.visible_limit
        remaining = [n for n in session.active_notes if n.position < limit]
        if len(remaining) == len(session.active_notes):
            return

        if session.target is not None and session.target not in remaining:
            session.target = None
        session.active_notes[:] = remaining

    def _maybe_spawn(self, session: GameSession) -> None:
        notes = session.active_notes
        if notes and notes[-1].position < self.spawn_x + self._spacing:
            return

        note = session.sequence.next()
        notes.append(ActiveNote(note=note, position=self.spawn_x))
        logger.debug(f"Spawned {note.pitch_key} ({session.sequence.remaining} left)")

    def render_items(self, session: GameSession) -> List[RenderItem]:
        """Drawing tuples for every visible note."""
        items = []
        for active in session.active_notes:
            if active.played:
                style = STYLE_PLAYED
            elif active is session.target:
                style = STYLE_TARGET
            else:
                style = STYLE_PENDING
            items.append((active.pitch_key, active.note.duration, active.position, style))
        return items
