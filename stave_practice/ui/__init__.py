import pygame
from typing import List, Optional

from ..core.interfaces import IStaveRenderer, RenderItem
from ..core.scheduling import FrameLoop
from ..errors import StavePracticeError
from ..logger import get_logger
from ..note_types import SessionStatus, StaveGeometry
from ..note_utils import parse_pitch_key
from ..practice_session import SessionController
from ..scroll_engine import STYLE_PLAYED, STYLE_TARGET

# Get logger for this module
logger = get_logger(__name__)

LETTER_STEPS = "CDEFGAB"
# Bottom line of the treble stave is E/4
BOTTOM_LINE_STEP = LETTER_STEPS.index("E") + 4 * 7


class PygameStaveRenderer(IStaveRenderer):
    """Draws a treble stave with scrolling note heads. Full redraw every frame."""

    def __init__(self, screen, fonts, top: int = 140, line_gap: int = 14, margin: int = 10):
        self.screen = screen
        self.fonts = fonts
        self.line_gap = line_gap
        self.bg_color = (255, 255, 255)
        self.line_color = (0, 0, 0)
        self.target_line_color = (0, 90, 255)
        self.note_colors = {
            STYLE_PLAYED: (0, 160, 0),
            STYLE_TARGET: (0, 90, 255),
        }
        self.default_note_color = (0, 0, 0)

        width = screen.get_width()
        self._geometry = StaveGeometry(
            origin_x=margin,
            origin_y=top,
            width=width - 2 * margin,
            height=4 * line_gap,
        )

    @property
    def geometry(self) -> StaveGeometry:
        return self._geometry

    def note_y(self, pitch_key: str) -> float:
        """Vertical position of a note head on the stave."""
        name, octave = parse_pitch_key(pitch_key)
        step = LETTER_STEPS.index(name[0]) + octave * 7
        bottom_y = self._geometry.origin_y + self._geometry.height
        return bottom_y - (step - BOTTOM_LINE_STEP) * self.line_gap / 2

    def draw(
        self,
        items: List[RenderItem],
        target_x: float,
        feedback: str,
        detected: Optional[str],
    ) -> None:
        g = self._geometry
        self.screen.fill(self.bg_color)

        # Stave lines
        for i in range(5):
            y = g.origin_y + i * self.line_gap
            pygame.draw.line(
                self.screen, self.line_color, (g.origin_x, y), (g.origin_x + g.width, y), 1
            )

        # Target line
        pygame.draw.line(
            self.screen,
            self.target_line_color,
            (target_x, g.origin_y - self.line_gap),
            (target_x, g.origin_y + g.height + self.line_gap),
            2,
        )

        for pitch_key, duration, x, style in items:
            self._draw_note(pitch_key, duration, x, self.note_colors.get(style, self.default_note_color))

        if feedback:
            surf = self.fonts["medium"].render(feedback, True, (40, 40, 40))
            self.screen.blit(surf, surf.get_rect(center=(self.screen.get_width() // 2, 60)))

        detected_text = f"Detected: {detected}" if detected else "Detected: -"
        surf = self.fonts["small"].render(detected_text, True, (90, 90, 90))
        self.screen.blit(surf, (g.origin_x, g.origin_y + g.height + 60))

    def _draw_note(self, pitch_key: str, duration: str, x: float, color) -> None:
        g = self._geometry
        y = self.note_y(pitch_key)
        head_w, head_h = self.line_gap * 1.3, self.line_gap * 0.9

        # Ledger lines above and below the stave
        top, bottom = g.origin_y, g.origin_y + g.height
        ledger_y = bottom + self.line_gap
        while ledger_y <= y + 1:
            pygame.draw.line(self.screen, self.line_color, (x - head_w, ledger_y), (x + head_w, ledger_y), 1)
            ledger_y += self.line_gap
        ledger_y = top - self.line_gap
        while ledger_y >= y - 1:
            pygame.draw.line(self.screen, self.line_color, (x - head_w, ledger_y), (x + head_w, ledger_y), 1)
            ledger_y -= self.line_gap

        head = pygame.Rect(0, 0, head_w, head_h)
        head.center = (x, y)
        if duration in ("w", "h"):
            pygame.draw.ellipse(self.screen, color, head, 2)
        else:
            pygame.draw.ellipse(self.screen, color, head)
        if duration != "w":
            pygame.draw.line(self.screen, color, (head.right - 1, y), (head.right - 1, y - 3 * self.line_gap), 2)

        name, _ = parse_pitch_key(pitch_key)
        if len(name) > 1:
            surf = self.fonts["small"].render(name[1:], True, color)
            self.screen.blit(surf, surf.get_rect(midright=(head.left - 3, y)))


class PygameUI:
    """Pygame-based UI for Stave Practice"""

    def __init__(self, fps: int = 60):
        """Initialize the Pygame UI"""
        self.screen = None
        self.renderer: Optional[PygameStaveRenderer] = None
        self.width = 1000
        self.height = 360
        self.fps = fps
        self.button_color = (0, 122, 255)
        self.stop_color = (220, 38, 38)
        self.initialized = False
        self.clock = None
        self.fonts = {}
        self._buttons = {}

        logger.debug("Initializing PygameUI")

    def init_screen(self):
        """Initialize the Pygame screen and resources"""
        try:
            pygame.init()
            self.screen = pygame.display.set_mode((self.width, self.height))
            pygame.display.set_caption("Stave Practice")

            self.fonts = {
                "medium": pygame.font.SysFont("Arial", 30, bold=True),
                "small": pygame.font.SysFont("Arial", 20),
            }
            self.renderer = PygameStaveRenderer(self.screen, self.fonts)

            self.clock = pygame.time.Clock()
            self.initialized = True
            logger.info("Pygame UI initialized successfully")
            return self.screen

        except pygame.error as e:
            logger.error(f"Failed to initialize Pygame: {e}")
            self.cleanup()
            raise

    def draw_button(self, name, text, x, y, width, height, color):
        """Draw a button and remember its rectangle for hit testing."""
        rect = pygame.Rect(x, y, width, height)
        hovering = rect.collidepoint(pygame.mouse.get_pos())
        pygame.draw.rect(self.screen, color, rect, 0 if hovering else 2)

        text_surf = self.fonts["medium"].render(text, True, (255, 255, 255) if hovering else color)
        self.screen.blit(text_surf, text_surf.get_rect(center=rect.center))
        self._buttons[name] = rect

    def _start(self, controller: SessionController, sequence: Optional[str]) -> None:
        controller.set_geometry(self.renderer.geometry)
        try:
            controller.start_session(sequence)
        except StavePracticeError as e:
            # Feedback already carries the user-facing message for permission errors
            logger.error(f"Could not start session: {e}")

    def _handle_events(self, controller: SessionController, sequence: Optional[str]) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE and controller.status is not SessionStatus.RUNNING:
                    self._start(controller, sequence)
                elif event.key == pygame.K_ESCAPE:
                    controller.stop_session()
            if event.type == pygame.MOUSEBUTTONDOWN:
                if self._buttons.get("start") and self._buttons["start"].collidepoint(event.pos):
                    if controller.status is not SessionStatus.RUNNING:
                        self._start(controller, sequence)
                elif self._buttons.get("stop") and self._buttons["stop"].collidepoint(event.pos):
                    controller.stop_session()
                elif self._buttons.get("close") and self._buttons["close"].collidepoint(event.pos):
                    return False
        return True

    def _frame(self, controller: SessionController, sequence: Optional[str]) -> bool:
        if not self._handle_events(controller, sequence):
            return False

        if controller.status is SessionStatus.RUNNING:
            controller.tick()

        self.renderer.draw(
            controller.render_items(),
            controller.target_x,
            controller.feedback,
            controller.detected_note,
        )

        y = self.height - 70
        self.draw_button("start", "Start", self.width / 2 - 330, y, 200, 50, self.button_color)
        self.draw_button("stop", "Stop", self.width / 2 - 100, y, 200, 50, self.stop_color)
        self.draw_button("close", "Close", self.width / 2 + 130, y, 200, 50, self.stop_color)

        pygame.display.flip()
        return True

    def run(self, controller: SessionController, sequence: Optional[str] = None) -> None:
        """Run the UI until the window is closed.

        Args:
            controller: Session controller to drive
            sequence: Catalogue name of the sequence to practice
        """
        if not self.initialized:
            self.init_screen()

        loop = FrameLoop(
            step=lambda: self._frame(controller, sequence),
            wait_for_frame=lambda: self.clock.tick(self.fps),
        )
        try:
            frames = loop.run()
            logger.info(f"UI loop ended after {frames} frames")
        finally:
            controller.stop_session()
            self.cleanup()

    def cleanup(self):
        """Clean up Pygame resources"""
        if self.initialized:
            logger.info("Cleaning up Pygame UI")
            pygame.quit()
            self.initialized = False
