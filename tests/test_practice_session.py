import unittest

from stave_practice.core.config import PracticeConfig
from stave_practice.errors import AudioPermissionError, BufferMisconfiguredError
from stave_practice.mock_audio import MockCapture, MockPitchEstimator
from stave_practice.note_types import SessionStatus, StaveGeometry
from stave_practice.note_utils import note_frequency
from stave_practice.practice_session import PERMISSION_DENIED_FEEDBACK, SessionController
from stave_practice.sequence import NoteSequence

GEOMETRY = StaveGeometry(origin_x=10, origin_y=40, width=600, height=150)


class ControllerTestCase(unittest.TestCase):
    def setUp(self):
        self.captures = []
        self.estimator = MockPitchEstimator(window_size=2048)
        self.controller = SessionController(
            config=PracticeConfig(window_size=2048),
            capture_factory=self.make_capture,
            estimator_factory=lambda window, rate: self.estimator,
            geometry=GEOMETRY,
            start_sampler=False,
        )
        self.feedback_events = []
        self.status_events = []
        self.target_events = []
        self.controller.events.on_feedback(self.feedback_events.append)
        self.controller.events.on_status(self.status_events.append)
        self.controller.events.on_target(self.target_events.append)

    def tearDown(self):
        self.controller.stop_session()

    def make_capture(self, config):
        capture = MockCapture(window_size=config.window_size)
        self.captures.append(capture)
        return capture

    def play(self, pitch_key):
        self.estimator.set_reading(note_frequency(pitch_key), 0.97)
        self.controller.sampler.sample_once()

    def silence(self):
        self.estimator.set_reading(0.0, 0.0)
        self.controller.sampler.sample_once()

    def tick_until(self, predicate, limit=2000):
        for _ in range(limit):
            if predicate():
                return True
            if not self.controller.tick():
                return predicate()
        return predicate()

    def run_to_end(self, limit=2000):
        for _ in range(limit):
            if not self.controller.tick():
                return
        self.fail("session did not finish")


class TestScenarios(ControllerTestCase):
    def test_correct_note_then_finish(self):
        self.controller.start_session(NoteSequence.from_keys(["A/4"]))
        self.assertTrue(self.tick_until(lambda: self.controller.target_key == "A/4"))
        self.play("A/4")
        self.run_to_end()

        self.assertEqual(self.feedback_events.count("Correct!"), 1)
        self.assertEqual(self.feedback_events[-1], "Practice finished!")
        self.assertEqual(self.controller.status, SessionStatus.FINISHED)
        self.assertEqual(self.controller.session.correct, 1)
        self.assertEqual(self.status_events, [SessionStatus.RUNNING, SessionStatus.FINISHED])
        self.assertEqual(self.target_events, ["A/4", None])

    def test_silence_is_missed(self):
        self.controller.start_session(NoteSequence.from_keys(["A/4"]))
        self.run_to_end()

        self.assertEqual(self.feedback_events.count("Missed A/4!"), 1)
        missed_at = self.feedback_events.index("Missed A/4!")
        self.assertIn("Practice finished!", self.feedback_events[missed_at:])
        self.assertEqual(self.controller.feedback, "Practice finished!")
        self.assertEqual(self.controller.session.missed, 1)

    def test_wrong_note(self):
        self.controller.start_session(NoteSequence.from_keys(["A/4"]))
        self.tick_until(lambda: self.controller.target_key == "A/4")
        self.play("C/4")
        self.controller.tick()
        self.assertEqual(self.controller.feedback, "Incorrect! You played C instead of A")

    def test_non_natural_note(self):
        self.controller.start_session(NoteSequence.from_keys(["A/4"]))
        self.tick_until(lambda: self.controller.target_key == "A/4")
        self.play("F#/4")
        self.controller.tick()
        self.assertEqual(self.controller.feedback, "Detected: F#/4")

    def test_wrong_then_right(self):
        self.controller.start_session(NoteSequence.from_keys(["A/4"]))
        self.tick_until(lambda: self.controller.target_key == "A/4")
        self.play("G/4")
        self.controller.tick()
        self.silence()
        self.controller.tick()
        self.assertEqual(self.controller.feedback, "Incorrect! You played G instead of A")
        self.play("A/4")
        self.controller.tick()
        self.assertEqual(self.controller.feedback, "Correct!")

    def test_detection_before_target_is_ignored(self):
        self.controller.start_session(NoteSequence.from_keys(["A/4"]))
        self.play("C/4")
        for _ in range(10):
            self.controller.tick()
        self.assertEqual(self.controller.feedback, "")
        self.assertIsNone(self.controller.target_key)

    def test_invariants_over_full_run(self):
        self.controller.start_session("warm-up")
        session = self.controller.session
        played = set()
        positions = {}
        readings = ["A/4", None, "C/4", "B/4", None, "C/5", "G/4", "F#/4", "E/5"]
        tick = 0
        while self.controller.tick():
            tick += 1
            if tick % 7 == 0:
                key = readings[(tick // 7) % len(readings)]
                if key is None:
                    self.silence()
                else:
                    self.play(key)

            if session.target is not None:
                self.assertIn(session.target, session.active_notes)
                self.assertFalse(session.target.played and session.target.position > 230)
            for active in session.active_notes:
                if id(active) in played:
                    self.assertTrue(active.played)
                if active.played:
                    played.add(id(active))
                self.assertGreaterEqual(active.position, positions.get(id(active), active.position))
                positions[id(active)] = active.position
            self.assertLess(tick, 5000)

        self.assertEqual(session.status, SessionStatus.FINISHED)
        self.assertEqual(session.correct + session.missed, 5)


class TestLifecycle(ControllerTestCase):
    def test_initial_state(self):
        self.assertEqual(self.controller.status, SessionStatus.NOT_STARTED)
        self.assertEqual(self.controller.feedback, "")
        self.assertFalse(self.controller.tick())
        self.assertEqual(self.controller.render_items(), [])

    def test_permission_denied(self):
        controller = SessionController(
            capture_factory=lambda config: MockCapture(deny=True),
            estimator_factory=lambda window, rate: self.estimator,
            start_sampler=False,
        )
        with self.assertRaises(AudioPermissionError):
            controller.start_session()
        self.assertEqual(controller.status, SessionStatus.NOT_STARTED)
        self.assertEqual(controller.feedback, PERMISSION_DENIED_FEEDBACK)
        self.assertIsNone(controller.sampler)
        self.assertFalse(controller.tick())

    def test_permission_error_is_a_permission_error(self):
        self.assertTrue(issubclass(AudioPermissionError, PermissionError))

    def test_buffer_mismatch_fails_fast(self):
        self.estimator = MockPitchEstimator(window_size=1024)
        with self.assertRaises(BufferMisconfiguredError):
            self.controller.start_session()
        self.assertEqual(self.controller.status, SessionStatus.NOT_STARTED)
        self.assertEqual(self.captures[0].release_calls, 1)
        self.assertFalse(self.captures[0].is_acquired())

    def test_stop_twice(self):
        self.controller.start_session()
        for _ in range(50):
            self.controller.tick()
        self.controller.stop_session()
        self.controller.stop_session()

        capture = self.captures[0]
        self.assertEqual(capture.release_calls, 1)
        self.assertEqual(self.controller.status, SessionStatus.NOT_STARTED)
        self.assertEqual(self.controller.session.active_notes, [])
        self.assertIsNone(self.controller.target_key)
        self.assertIsNone(self.controller.sampler)
        self.assertFalse(self.controller.tick())
        self.assertEqual(self.status_events, [SessionStatus.RUNNING, SessionStatus.NOT_STARTED])

    def test_restart_releases_previous_session(self):
        first = self.controller.start_session()
        self.controller.tick()
        second = self.controller.start_session()

        self.assertIsNot(first, second)
        self.assertEqual(first.status, SessionStatus.NOT_STARTED)
        self.assertEqual(second.status, SessionStatus.RUNNING)
        self.assertEqual(self.captures[0].release_calls, 1)
        self.assertTrue(self.captures[1].is_acquired())
        self.assertEqual(second.sequence.remaining, len(second.sequence))

    def test_finish_releases_resources(self):
        self.controller.start_session(NoteSequence.from_keys(["A/4"]))
        self.run_to_end()
        self.assertEqual(self.captures[0].release_calls, 1)
        self.assertIsNone(self.controller.sampler)
        # Stopping a finished session does nothing
        self.controller.stop_session()
        self.assertEqual(self.controller.status, SessionStatus.FINISHED)
        self.assertEqual(self.captures[0].release_calls, 1)

    def test_sequence_is_reused_from_start(self):
        sequence = NoteSequence.from_keys(["A/4", "B/4"])
        sequence.next()
        session = self.controller.start_session(sequence)
        self.assertEqual(session.sequence.remaining, 2)

    def test_context_manager_stops_session(self):
        with self.controller as controller:
            controller.start_session()
            controller.tick()
        self.assertEqual(self.controller.status, SessionStatus.NOT_STARTED)
        self.assertEqual(self.captures[0].release_calls, 1)

    def test_background_sampler_is_stopped(self):
        controller = SessionController(
            capture_factory=self.make_capture,
            estimator_factory=lambda window, rate: self.estimator,
        )
        controller.start_session()
        sampler = controller.sampler
        self.assertTrue(sampler.is_running())
        controller.stop_session()
        self.assertFalse(sampler.is_running())


if __name__ == "__main__":
    unittest.main()
