"""Tests for best-effort notifications."""

import os
import threading
import time
import unittest
from unittest import mock

from fpenroll.notifications import (
    BackgroundNotifier, LoggingNotifier, NullNotifier, PopupNotifier, deliver, good_swipes_message
)
from tests.fakes import FailingNotifier, RecordingNotifier


class TestDeliver(unittest.TestCase):

    def test_forwards_message(self):
        notifier = RecordingNotifier()
        deliver(notifier, "hello")
        self.assertEqual(notifier.messages, ["hello"])

    def test_swallows_failures(self):
        notifier = FailingNotifier()
        deliver(notifier, "hello")
        self.assertEqual(notifier.calls, 1)

    def test_none_is_silent(self):
        deliver(None, "hello")

    def test_builtin_notifiers(self):
        NullNotifier().notify("ignored")
        LoggingNotifier().notify("logged")

    def test_good_swipe_messages(self):
        self.assertEqual(good_swipes_message(1), "1 good swipe captured 2 to go")
        self.assertEqual(good_swipes_message(3), "3 good swipes captured DONE")


class SlowNotifier:
    def __init__(self):
        self.messages = []
        self.release = threading.Event()

    def notify(self, message):
        self.release.wait(timeout=5)
        self.messages.append(message)


class TestBackgroundNotifier(unittest.TestCase):

    def test_does_not_block_and_keeps_order(self):
        inner = SlowNotifier()
        notifier = BackgroundNotifier(inner)

        started = time.monotonic()
        for message in ("one", "two", "three"):
            notifier.notify(message)
        self.assertLess(time.monotonic() - started, 1.0)

        inner.release.set()
        notifier.close()
        self.assertEqual(inner.messages, ["one", "two", "three"])

    def test_inner_failures_stay_on_worker(self):
        inner = FailingNotifier()
        with BackgroundNotifier(inner) as notifier:
            notifier.notify("boom")
        self.assertEqual(inner.calls, 1)


class TestPopupNotifier(unittest.TestCase):

    def _notifier(self):
        notifier = PopupNotifier(timeout=2)
        notifier.command = "/usr/bin/xmessage"
        return notifier

    def test_no_display_no_popup(self):
        environ = {k: v for k, v in os.environ.items() if k != "DISPLAY"}
        with mock.patch.dict(os.environ, environ, clear=True), \
                mock.patch("fpenroll.notifications.subprocess.Popen") as popen:
            self._notifier().notify("bad swipe, please try again")
        popen.assert_not_called()

    def test_missing_command_no_popup(self):
        with mock.patch("fpenroll.notifications.shutil.which", return_value=None):
            notifier = PopupNotifier()
        with mock.patch.dict(os.environ, {"DISPLAY": ":0"}), \
                mock.patch("fpenroll.notifications.subprocess.Popen") as popen:
            notifier.notify("Enrollment Success")
        self.assertFalse(notifier.available)
        popen.assert_not_called()

    def test_spawns_centered_popup(self):
        with mock.patch.dict(os.environ, {"DISPLAY": ":0"}), \
                mock.patch("fpenroll.notifications.subprocess.Popen") as popen:
            self._notifier().notify("Enrollment Success")
        args = popen.call_args[0][0]
        self.assertEqual(args, ["/usr/bin/xmessage", "-timeout", "2", "-center", "Enrollment Success"])
