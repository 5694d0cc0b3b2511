import unittest

from stave_practice.core.config import PracticeConfig
from stave_practice.game_session import GameSession
from stave_practice.note_types import SessionStatus, StaveGeometry
from stave_practice.scroll_engine import (
    STYLE_PENDING,
    STYLE_PLAYED,
    STYLE_TARGET,
    ScrollEngine,
)
from stave_practice.sequence import NoteSequence

GEOMETRY = StaveGeometry(origin_x=10, origin_y=40, width=600, height=150)


def running_session(*keys):
    session = GameSession(NoteSequence.from_keys(keys))
    session.transition(SessionStatus.RUNNING)
    return session


class TestScrollEngineGeometry(unittest.TestCase):
    def test_target_line_and_band(self):
        engine = ScrollEngine(PracticeConfig(), GEOMETRY)
        self.assertEqual(engine.target_x, 210)
        self.assertEqual(engine.band(), (190, 230))
        self.assertEqual(engine.visible_limit, 630)
        self.assertEqual(engine.spawn_x, 10)

    def test_default_constants_keep_one_note_in_band(self):
        self.assertTrue(ScrollEngine(PracticeConfig(), GEOMETRY).check_spacing())

    def test_tight_spacing_is_flagged(self):
        config = PracticeConfig(note_spacing=30)
        with self.assertLogs("stave_practice.scroll_engine", level="WARNING"):
            self.assertFalse(ScrollEngine(config, GEOMETRY).check_spacing())

    def test_fast_scroll_is_flagged(self):
        config = PracticeConfig(scroll_speed=50)
        with self.assertLogs("stave_practice.scroll_engine", level="WARNING"):
            self.assertFalse(ScrollEngine(config, GEOMETRY).check_spacing())


class TestScrollEngineTick(unittest.TestCase):
    def setUp(self):
        self.now = 0.0
        self.engine = ScrollEngine(PracticeConfig(), GEOMETRY, clock=lambda: self.now)

    def tick_until(self, session, predicate, limit=1000):
        for _ in range(limit):
            if predicate():
                return True
            self.engine.tick(session)
        return predicate()

    def test_first_tick_spawns_at_origin(self):
        session = running_session("A/4", "B/4")
        self.engine.tick(session)
        self.assertEqual(len(session.active_notes), 1)
        self.assertEqual(session.active_notes[0].position, 10)
        self.assertEqual(session.sequence.remaining, 1)

    def test_spawn_waits_for_spacing(self):
        session = running_session("A/4", "B/4")
        self.engine.tick(session)
        # 39 more ticks move the first note to 205, short of 10 + 200
        for _ in range(39):
            self.engine.tick(session)
        self.assertEqual(len(session.active_notes), 1)
        self.engine.tick(session)
        self.assertEqual(len(session.active_notes), 2)
        self.assertEqual(session.active_notes[0].position, 210)
        self.assertEqual(session.active_notes[1].position, 10)

    def test_positions_never_decrease(self):
        session = running_session("A/4", "B/4", "C/5")
        last = {}
        for _ in range(300):
            self.engine.tick(session)
            for active in session.active_notes:
                self.assertGreaterEqual(active.position, last.get(id(active), active.position))
                last[id(active)] = active.position

    def test_note_in_band_becomes_target(self):
        session = running_session("A/4")
        self.now = 12.5
        self.assertTrue(self.tick_until(session, lambda: session.target is not None))
        self.assertEqual(session.target.position, 190)
        self.assertEqual(session.target_key, "A/4")
        self.assertEqual(session.target.activated_at, 12.5)

    def test_unplayed_target_is_missed(self):
        session = running_session("A/4")
        self.tick_until(session, lambda: session.target is not None)
        self.assertTrue(self.tick_until(session, lambda: session.target is None))
        self.assertEqual(session.feedback, "Missed A/4!")
        self.assertEqual(session.missed, 1)
        self.assertEqual(session.active_notes[0].position, 235)

        # The miss message is cleared on the following frame
        self.engine.tick(session)
        self.assertEqual(session.feedback, "")

    def test_missed_note_is_not_retargeted(self):
        session = running_session("A/4")
        self.tick_until(session, lambda: session.target is not None)
        self.tick_until(session, lambda: session.target is None)
        for _ in range(20):
            self.engine.tick(session)
            self.assertIsNone(session.target)

    def test_played_target_is_released_without_miss(self):
        session = running_session("A/4")
        self.tick_until(session, lambda: session.target is not None)
        session.target.mark_played()
        session.feedback = "Correct!"
        self.tick_until(session, lambda: session.target is None)
        self.assertEqual(session.feedback, "Correct!")
        self.assertEqual(session.missed, 0)
        self.assertTrue(session.active_notes[0].played)

    def test_target_is_not_preempted(self):
        engine = ScrollEngine(PracticeConfig(note_spacing=20), GEOMETRY)
        session = running_session("A/4", "B/4")
        for _ in range(200):
            engine.tick(session)
            if session.target is not None:
                break
        first = session.target
        self.assertEqual(first.pitch_key, "A/4")
        # Let the second note enter the band while the first is still targeted
        while session.active_notes[1].position < 190:
            engine.tick(session)
            if session.target is None:
                break
        self.assertIs(session.target, first)

    def test_second_note_targeted_after_first_resolves(self):
        session = running_session("A/4", "B/4")
        self.tick_until(session, lambda: session.target is not None)
        self.tick_until(session, lambda: session.target is None)
        self.assertTrue(self.tick_until(session, lambda: session.target is not None))
        self.assertEqual(session.target_key, "B/4")

    def test_exit_and_finish(self):
        session = running_session("A/4")
        self.assertTrue(
            self.tick_until(session, lambda: session.status is SessionStatus.FINISHED)
        )
        self.assertEqual(session.active_notes, [])
        self.assertIsNone(session.target)
        self.assertEqual(session.feedback, "Practice finished!")

        # No further changes once finished
        self.engine.tick(session)
        self.assertEqual(session.feedback, "Practice finished!")

    def test_tick_ignores_sessions_not_running(self):
        session = GameSession(NoteSequence.from_keys(["A/4"]))
        self.engine.tick(session)
        self.assertEqual(session.active_notes, [])

    def test_render_items(self):
        session = running_session("A/4", "B/4")
        self.tick_until(session, lambda: len(session.active_notes) == 2)
        self.assertEqual(session.target_key, "A/4")
        items = self.engine.render_items(session)
        self.assertEqual(items[0][0], "A/4")
        self.assertEqual(items[0][1], "q")
        self.assertEqual(items[0][3], STYLE_TARGET)
        self.assertEqual(items[1][3], STYLE_PENDING)

        session.active_notes[0].mark_played()
        self.assertEqual(self.engine.render_items(session)[0][3], STYLE_PLAYED)


if __name__ == "__main__":
    unittest.main()
